# tests/test_ids.py
"""Test identifier generation"""

from unittest.mock import patch

from itunes_import.core.ids import (
    DEFAULT_ID_LENGTH,
    ID_ALPHABET,
    TRACKLIST_ID_LENGTH,
    make_id,
    unique_id,
)


class TestMakeId:
    """Test random ID generation"""

    def test_default_length(self):
        assert len(make_id()) == DEFAULT_ID_LENGTH == 10

    def test_tracklist_length(self):
        assert len(make_id(TRACKLIST_ID_LENGTH)) == 7

    def test_alphabet(self):
        """IDs only use lowercase letters and the digits 2-7"""
        for _ in range(50):
            assert set(make_id()) <= set(ID_ALPHABET)
        assert ID_ALPHABET == "abcdefghijklmnopqrstuvwxyz234567"


class TestUniqueId:
    """Test collision-checked ID generation"""

    def test_retries_until_free(self):
        """Taken candidates are rejected until a free one comes up"""
        taken = {"aaaaaaa": object()}
        with patch(
            "itunes_import.core.ids.make_id",
            side_effect=["aaaaaaa", "aaaaaaa", "bbbbbbb"],
        ) as mock_make:
            assert unique_id(taken, 7) == "bbbbbbb"
        assert mock_make.call_count == 3

    def test_never_returns_taken_key(self):
        """With a tiny ID space, every new key is still fresh"""
        taken = {}
        for i in range(300):
            new_id = unique_id(taken, 2)
            assert new_id not in taken
            taken[new_id] = i
        assert len(taken) == 300

    def test_accepts_sets(self):
        assert unique_id({"x"}, 4) != "x"
