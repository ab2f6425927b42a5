import logging
from typing import Dict, Type, Callable, Awaitable, Any
from lookout.core.cqrs.command import Command

logger = logging.getLogger(__name__)


class CommandBus:
    """
    Routes each command to its single registered handler (1-to-1).
    """
    def __init__(self):
        self._handlers: Dict[Type[Command], Callable[[Command], Awaitable[Any]]] = {}

    def register(self, command_type: Type[Command], handler: Callable[[Command], Awaitable[Any]]):
        """
        Raises:
            ValueError: if a handler is already registered for the type.
        """
        if command_type in self._handlers:
            logger.error(f"Handler for command '{command_type.__name__}' is already registered.")
            raise ValueError(f"Handler for command '{command_type.__name__}' is already registered.")

        self._handlers[command_type] = handler
        logger.debug(f"Handler {handler.__name__} registered for {command_type.__name__}")

    def is_registered(self, command_type: Type[Command]) -> bool:
        return command_type in self._handlers

    async def execute(self, command: Command) -> Any:
        """
        Raises:
            ValueError: if no handler is registered for the command type.
        """
        handler = self._handlers.get(type(command))
        if not handler:
            logger.error(f"No handler registered for command '{type(command).__name__}'")
            raise ValueError(f"No handler registered for command '{type(command).__name__}'")

        return await handler(command)
