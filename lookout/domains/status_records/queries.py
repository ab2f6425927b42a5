from dataclasses import dataclass
from lookout.core.cqrs.query import Query


@dataclass(frozen=True)
class ListFileStatusesQuery(Query):
    pass


@dataclass(frozen=True)
class ExportFileStatusesQuery(Query):
    format: str = "csv"
    actor: str = "system"


@dataclass(frozen=True)
class GetStatisticsReportQuery(Query):
    actor: str = "system"
