"""In-process messages and the synchronous bus that delivers them.

Commands (``AuctionWon``) are delivered to exactly one handler. Events
(``AuctionClosedViaBuyNow``, ``OrderStatusChanged``) fan out to every
subscriber in registration order. Handlers run on the caller's thread and
their exceptions propagate to whoever emitted the message.
"""

import logging
from collections import defaultdict
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)


class AuctionWon(Message):
    """Raised by the auction engine when a listing closes with at least one bid."""

    listing_id: int = Field(gt=0)


class AuctionClosedViaBuyNow(Message):
    listing_id: int


class OrderStatusChanged(Message):
    order_id: int
    old_status: str
    new_status: str
    manual: bool = False


Handler = Callable[..., Any]


class HandlerRegistrationError(RuntimeError):
    pass


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[type[Message], list[Handler]] = defaultdict(list)
        self._command_handlers: dict[type[Message], Handler] = {}

    def subscribe(self, message_type: type[Message], handler: Handler) -> None:
        self._subscribers[message_type].append(handler)

    def emit(self, event: Message, **kwargs: Any) -> None:
        handlers = list(self._subscribers.get(type(event), ()))
        logger.debug("Emitting %s to %s handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(event, **kwargs)

    def register_command(self, command_type: type[Message], handler: Handler) -> None:
        if command_type in self._command_handlers:
            raise HandlerRegistrationError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler

    def dispatch(self, command: Message, **kwargs: Any) -> Any:
        handler = self._command_handlers.get(type(command))
        if handler is None:
            raise HandlerRegistrationError(f"No handler registered for {type(command).__name__}")
        return handler(command, **kwargs)
