"""
Event Bus
Engine modules announce what they loaded, exported or drafted; the CLI (or any
other front end) subscribes without the engine importing it.

Payloads are plain dicts; see the event constants below for their keys.
"""

from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]


class EventBus:
    """
    In-process publish/subscribe. Handlers run synchronously in registration
    order; a failing handler is logged and skipped.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {}

    def on(self, event_name: str, handler: Handler):
        """
        Register a handler for an event.

        Args:
            event_name: One of the EVENT_* constants
            handler: Callable taking the payload dict
        """
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {getattr(handler, '__name__', handler)}")

    def off(self, event_name: str, handler: Handler) -> bool:
        """Unregister a handler. Returns False if it was not registered."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, event_name: str, event_data: Optional[Dict[str, Any]] = None) -> int:
        """
        Deliver a payload to every handler of event_name.
        Returns the number of handlers that completed without raising.
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with keys: {sorted(event_data)}")

        delivered = 0
        # copy: a handler may unregister itself
        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_data)
                delivered += 1
            except Exception as e:
                logger.error(
                    f"Error in handler {getattr(handler, '__name__', handler)} for event '{event_name}': {e}"
                )
        return delivered

    def clear(self):
        """Drop every handler (tests use this between cases)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# API client. Payload: {count, source}
EVENT_CONTRACTS_LOADED = 'contracts_loaded'

# Import / export. Payloads: {path, count, invalid} / {format, count, path}
EVENT_CONTRACTS_IMPORTED = 'contracts_imported'
EVENT_CONTRACTS_EXPORTED = 'contracts_exported'

# Expiry notifications. Payload: {contract_id, type, path}
EVENT_NOTIFICATION_DRAFTED = 'notification_drafted'
