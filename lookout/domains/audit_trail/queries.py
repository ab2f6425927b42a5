from dataclasses import dataclass
from typing import Optional
from lookout.core.cqrs.query import Query


@dataclass(frozen=True)
class ListAuditEntriesQuery(Query):
    """Newest first; ``actor`` narrows to one actor, ``limit`` caps the count."""
    actor: Optional[str] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class ExportAuditLogQuery(Query):
    pass
