"""
Short random identifiers for tracks and tracklists.

IDs are drawn uniformly from a lowercase base32 alphabet. The generator
knows nothing about existing keys: callers use unique_id() to retry
against the map the new key is going into. Tracks and tracklists are
separate namespaces and are never checked against each other.

Usage:
    from itunes_import.core.ids import unique_id, TRACKLIST_ID_LENGTH

    track_id = unique_id(tracks)
    folder_id = unique_id(track_lists, TRACKLIST_ID_LENGTH)
"""

import secrets
from collections.abc import Container


ID_ALPHABET = "abcdefghijklmnopqrstuvwxyz234567"

# Default length, used for track IDs
DEFAULT_ID_LENGTH = 10
TRACKLIST_ID_LENGTH = 7


def make_id(length: int = DEFAULT_ID_LENGTH) -> str:
    """
    Generate a random ID.

    Args:
        length: Number of characters. Default 10.

    Returns:
        A string of `length` characters from ID_ALPHABET.

    Example:
        make_id(7)  # e.g. "k3pq7za"
    """
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def unique_id(taken: Container[str], length: int = DEFAULT_ID_LENGTH) -> str:
    """
    Generate an ID that is not in `taken`.

    Rejection sampling: a new candidate is drawn until one is free.
    There is no retry cap.

    Args:
        taken: The namespace the ID goes into (a dict or set of keys).
        length: Number of characters.

    Returns:
        An ID not contained in `taken`. The caller is responsible for
        inserting it.
    """
    while True:
        candidate = make_id(length)
        if candidate not in taken:
            return candidate
