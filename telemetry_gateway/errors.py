"""Exception types raised by gateway components"""


class GatewayError(Exception):
    """Base class for all gateway errors"""


class BindError(GatewayError):
    """Socket setup failed (bind or connect). Aborts the start sequence."""


class AlreadyRunningError(GatewayError):
    """start() was called on a component that is already running"""


class SendError(GatewayError):
    """A datagram could not be written to the remote log sink"""


class EventError(GatewayError):
    """An inbound event could not be turned into a typed event"""


class DecodeError(EventError):
    """Datagram body is not a JSON object"""


class InvalidDiscriminatorError(EventError):
    """The 'type' field is missing or is not a string"""


class UnknownDiscriminatorError(EventError):
    """The 'type' field names no known event"""

    def __init__(self, event_type: str) -> None:
        super().__init__(f"Unknown data type: {event_type}")
        self.event_type: str = event_type
