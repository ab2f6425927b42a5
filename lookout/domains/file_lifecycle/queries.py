from dataclasses import dataclass
from lookout.core.cqrs.query import Query

# Probe write access on both watched folders
@dataclass(frozen=True)
class CheckWriteAccessQuery(Query):
    pass

# Check that an arbitrary path is reachable
@dataclass(frozen=True)
class PathCheckQuery(Query):
    path: str

# Current configuration of the watched folders
@dataclass(frozen=True)
class GetMonitoredPathsQuery(Query):
    pass
