"""
Commands for the File Lifecycle domain.

Each command is an operator's intent to act on a file in the failed folder.
``actor`` identifies who asked and ends up in remarks and the audit log.
"""
from dataclasses import dataclass
from lookout.core.cqrs.command import Command


@dataclass(frozen=True)
class RetryFileCommand(Command):
    """Move failed/<name> back to import and requeue its status."""
    name: str
    actor: str = "system"


@dataclass(frozen=True)
class RenameFileCommand(Command):
    """Move failed/<old_name> to import/<new_name> under a fresh identity."""
    old_name: str
    new_name: str
    actor: str = "system"


@dataclass(frozen=True)
class DeleteFailedFileCommand(Command):
    name: str
    actor: str = "system"


@dataclass(frozen=True)
class ExpandFilePrefixesCommand(Command):
    """Split a multi-prefix file into one import copy per prefix pair."""
    name: str
    actor: str = "system"
