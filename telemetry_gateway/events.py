import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Union

from .errors import DecodeError, InvalidDiscriminatorError, UnknownDiscriminatorError

UINT32_MASK = 0xFFFFFFFF

DEFAULT_LOG_LEVEL = 'INFO'
DEFAULT_LOG_MESSAGE = 'No message provided'


class SinkEndpoint(NamedTuple):
    """Address of the remote log collector"""
    host: str
    port: int


@dataclass(frozen=True)
class VariableUpdate:
    """One point-in-time measurement for a named protocol variable"""
    tag: str
    path: str
    value: Any
    status_code: int
    namespace: str


@dataclass(frozen=True)
class LogEvent:
    """Log-shaped record to forward to the remote collector"""
    record: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConfigEvent:
    """Configuration payload for one of the reserved configuration handlers"""
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)


Event = Union[VariableUpdate, LogEvent, ConfigEvent]


def coerce_status_code(raw: Any) -> int:
    """
    Coerce a JSON status code into the unsigned 32-bit range.

    Numbers are truncated toward zero and wrapped; anything else
    (strings, bools, null, NaN, infinity) becomes 0.
    """
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0
    if isinstance(raw, float) and not math.isfinite(raw):
        return 0
    return int(raw) & UINT32_MASK


def _reject_constant(token: str) -> None:
    # NaN, Infinity and -Infinity are not JSON
    raise ValueError(f"invalid JSON constant: {token}")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_log_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of record with timestamp, level and message guaranteed present"""
    normalized = dict(record)
    if 'timestamp' not in normalized:
        normalized['timestamp'] = utc_timestamp()
    if 'level' not in normalized:
        normalized['level'] = DEFAULT_LOG_LEVEL
    if 'message' not in normalized:
        normalized['message'] = DEFAULT_LOG_MESSAGE
    return normalized


class EventParser:
    """
    Turn inbound datagrams into typed events.

    Every datagram carries one JSON object whose "type" field selects
    the event variant. Optional fields are extracted permissively: a
    missing or wrongly typed field becomes its zero value, so an event
    is only ever rejected for its envelope (bad JSON or bad "type").
    """
    VARIABLE_UPDATE = 'opcua'
    AUTH_CONFIG = 'opcua_auth_config'
    USERS = 'opcua_users'
    LOG = 'log'
    LOG_SINK_CONFIG = 'secondary_log_config'
    INTERFACE_CONFIG = 'receive_interface_config'

    CONFIG_TYPES = frozenset({
        AUTH_CONFIG,
        USERS,
        LOG_SINK_CONFIG,
        INTERFACE_CONFIG,
    })

    @classmethod
    def decode(cls, data: bytes) -> Dict[str, Any]:
        """Decode one datagram body into a JSON object"""
        try:
            payload = json.loads(data.decode('utf-8'), parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(str(e)) from e

        if not isinstance(payload, dict):
            raise DecodeError(f"expected a JSON object, got {type(payload).__name__}")
        return payload

    @classmethod
    def parse(cls, payload: Dict[str, Any]) -> Event:
        """Classify a decoded payload by its "type" field"""
        event_type = payload.get('type')
        if not isinstance(event_type, str):
            raise InvalidDiscriminatorError("Missing or invalid data type")

        if event_type == cls.VARIABLE_UPDATE:
            return cls._parse_variable_update(payload)
        if event_type == cls.LOG:
            return LogEvent(record=payload)
        if event_type in cls.CONFIG_TYPES:
            return ConfigEvent(event_type=event_type, payload=payload)

        raise UnknownDiscriminatorError(event_type)

    @classmethod
    def _parse_variable_update(cls, payload: Dict[str, Any]) -> VariableUpdate:
        return VariableUpdate(
            tag=cls._str_field(payload, 'tag'),
            path=cls._str_field(payload, 'path'),
            value=payload.get('value'),
            status_code=coerce_status_code(payload.get('status_code')),
            namespace=cls._str_field(payload, 'namespace'),
        )

    @staticmethod
    def _str_field(payload: Dict[str, Any], key: str) -> str:
        value = payload.get(key)
        return value if isinstance(value, str) else ''
