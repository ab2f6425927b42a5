from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TCommand = TypeVar('TCommand', bound='Command')
TResult = TypeVar('TResult')


class Command(ABC):
    """Base class for commands: DTOs describing an intended state change."""
    pass


class CommandHandler(Generic[TCommand, TResult], ABC):
    """Handles exactly one command type and returns its result shape."""
    @abstractmethod
    async def handle(self, command: TCommand) -> TResult:
        raise NotImplementedError
