"""Client core: event bus, domain managers, use cases and their wiring."""

from .bootstrap import ClientContext, create_client_context
from .events import EventBus

__all__ = [
    # Bootstrap
    "ClientContext",
    "create_client_context",
    # Event Bus
    "EventBus",
]
