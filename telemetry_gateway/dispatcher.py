import logging
from typing import Any, Callable, Dict

from .errors import EventError
from .events import ConfigEvent, Event, EventParser, LogEvent, VariableUpdate
from .log_forwarder import RemoteLogForwarder
from .variable_store import VariableStore

logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Route decoded inbound events to exactly one handler.

    Holds no lock of its own: the variable store and the log forwarder
    each guard their own state, and the remaining configuration
    handlers only log.
    """

    def __init__(self, variable_store: VariableStore, log_forwarder: RemoteLogForwarder) -> None:
        self.variable_store: VariableStore = variable_store
        self.log_forwarder: RemoteLogForwarder = log_forwarder

        self.config_handlers: Dict[str, Callable[[ConfigEvent], None]] = {
            EventParser.AUTH_CONFIG: self._handle_auth_config,
            EventParser.USERS: self._handle_users,
            EventParser.LOG_SINK_CONFIG: self._handle_log_config,
            EventParser.INTERFACE_CONFIG: self._handle_interface_config,
        }

    def dispatch(self, payload: Dict[str, Any]) -> bool:
        """
        Parse payload and run its handler.

        Returns False, after logging one diagnostic, when the payload
        has no usable "type" or names an unknown one.
        """
        try:
            event = EventParser.parse(payload)
        except EventError as e:
            logger.warning(f"Dropping event: {e}")
            return False

        self._route(event)
        return True

    def _route(self, event: Event) -> None:
        if isinstance(event, VariableUpdate):
            self.variable_store.handle_variable_update(
                event.tag, event.path, event.value, event.status_code, event.namespace
            )
        elif isinstance(event, LogEvent):
            self.log_forwarder.send_log(event.record)
        else:
            self.config_handlers[event.event_type](event)

    def _handle_auth_config(self, event: ConfigEvent) -> None:
        logger.info(f"Handling auth config: {event.payload}")

    def _handle_users(self, event: ConfigEvent) -> None:
        logger.info(f"Handling users: {event.payload}")
        self.variable_store.manage_users(event.payload)

    def _handle_log_config(self, event: ConfigEvent) -> None:
        logger.info(f"Handling log config: {event.payload}")
        self.log_forwarder.config_log(event.payload)

    def _handle_interface_config(self, event: ConfigEvent) -> None:
        logger.info(f"Handling interface config: {event.payload}")
