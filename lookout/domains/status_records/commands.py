"""
Commands for the Status Records domain: bulk maintenance of the status table.
"""
from dataclasses import dataclass
from typing import Optional
from lookout.core.cqrs.command import Command


@dataclass(frozen=True)
class ClearAllFileStatusesCommand(Command):
    actor: str = "system"


@dataclass(frozen=True)
class PurgeStaleStatusesCommand(Command):
    """Drop records older than ``max_age_days`` (None: configured retention)."""
    max_age_days: Optional[float] = None
    actor: str = "system"


@dataclass(frozen=True)
class ImportFileStatusesCommand(Command):
    content: str
    format: str = "csv"
    actor: str = "system"
