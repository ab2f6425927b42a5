from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TQuery = TypeVar('TQuery', bound='Query')
TResult = TypeVar('TResult')


class Query(ABC):
    """
    Base class for queries. A query asks for data and never changes
    lifecycle state (audit records aside).
    """
    pass


class QueryHandler(Generic[TQuery, TResult], ABC):
    @abstractmethod
    async def handle(self, query: TQuery) -> TResult:
        raise NotImplementedError
