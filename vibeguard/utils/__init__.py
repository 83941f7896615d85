"""Utility helpers for the scanner."""

from .fileio import load_file, is_binary_sample, read_yaml_file
from .code import discover_files, matches_glob, is_supported_file

__all__ = [
    "load_file",
    "is_binary_sample",
    "read_yaml_file",
    "discover_files",
    "matches_glob",
    "is_supported_file",
]
