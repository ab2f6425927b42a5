"""
Utilities package for Publish Lookout.

Async filesystem helpers used by the lifecycle engine and path resolver,
plus host-specific settings file selection.
"""

from .file_operations import (
    is_plain_file_name,
    split_extension,
    file_exists,
    move_file,
    copy_file,
    remove_file,
    write_probe_file,
)

__all__ = [
    "is_plain_file_name",
    "split_extension",
    "file_exists",
    "move_file",
    "copy_file",
    "remove_file",
    "write_probe_file",
]
