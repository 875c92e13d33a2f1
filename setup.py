#!/usr/bin/env python3
"""
Setup configuration for itunes-import
Moves an exported iTunes library into a managed music library
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "mutagen>=1.47.0",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "rich>=13.7.0",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
    "Pillow>=10.0.0",
]

setup(
    name="itunes-import",
    version="0.1.0",
    author="itunes-import",
    description="Import an iTunes Library.xml into a managed music library",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["itunes_import", "itunes_import.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "itunes-import=itunes_import.cli:main",
        ],
    },
    keywords="itunes music library import playlist cli",
)
