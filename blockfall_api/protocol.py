"""Protocol data classes for WebSocket communication."""

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional, Literal
from enum import Enum

PROTOCOL_VERSION = "b1.0.0"


class MessageType(str, Enum):
    """WebSocket message types."""
    HELLO = "hello"
    START = "start"
    COMMAND = "command"
    SUBSCRIBE = "subscribe"
    OBS = "obs"
    LINES_CLEARED = "lines_cleared"
    SUBSCRIBE_ACK = "subscribe_ack"
    ERROR = "error"


@dataclass
class HelloRequest:
    """Client hello message."""
    type: Literal["hello"] = "hello"
    version: str = PROTOCOL_VERSION


@dataclass
class HelloResponse:
    """Server hello response."""
    type: Literal["hello"] = "hello"
    version: str = PROTOCOL_VERSION
    server: str = "blockfall-py"


@dataclass
class StartRequest:
    """Request to start (or restart) a game session."""
    seed: Optional[int] = None
    tags: Optional[List[str]] = None  # Visual tag pool; None = server default
    bag: bool = False  # Deal kinds from a 7-bag instead of uniformly
    type: Literal["start"] = "start"


@dataclass
class CommandRequest:
    """Request to apply a player command."""
    action: str  # LEFT, RIGHT, ROTATE, DOWN, HARD, SOFT_ON, SOFT_OFF
    type: Literal["command"] = "command"


@dataclass
class SubscribeRequest:
    """Request to subscribe to game state updates."""
    stream: bool = True
    type: Literal["subscribe"] = "subscribe"


@dataclass
class ObservationResponse:
    """Game state observation response."""
    data: Dict[str, Any]  # Observation dict from Observation.to_dict()
    events: List[str] = field(default_factory=list)
    type: Literal["obs"] = "obs"


@dataclass
class LinesClearedResponse:
    """Sent once per completed line clear."""
    count: int
    type: Literal["lines_cleared"] = "lines_cleared"


@dataclass
class SubscribeAckResponse:
    """Acknowledges a subscribe request."""
    streaming: bool
    type: Literal["subscribe_ack"] = "subscribe_ack"


@dataclass
class ErrorResponse:
    """Error response."""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    type: Literal["error"] = "error"


class ErrorCode:
    """Standard error codes."""
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_ACTION = "INVALID_ACTION"
    GAME_NOT_INITIALIZED = "GAME_NOT_INITIALIZED"


def parse_message(data: Dict[str, Any]) -> Any:
    """Parse incoming WebSocket message.

    Args:
        data: JSON message dict

    Returns:
        Parsed message object

    Raises:
        ValueError: If message type or fields are invalid
    """
    if not isinstance(data, dict):
        raise ValueError("Message must be a JSON object")

    msg_type = data.get("type")

    if msg_type == MessageType.HELLO:
        message_cls = HelloRequest
    elif msg_type == MessageType.START:
        message_cls = StartRequest
    elif msg_type == MessageType.COMMAND:
        message_cls = CommandRequest
    elif msg_type == MessageType.SUBSCRIBE:
        message_cls = SubscribeRequest
    else:
        raise ValueError(f"Unknown message type: {msg_type}")

    try:
        message = message_cls(**data)
    except TypeError as e:
        raise ValueError(f"Invalid {msg_type} message: {e}") from e

    _check_fields(message)
    return message


def _check_fields(message: Any) -> None:
    """Reject field values of the wrong JSON type.

    Raises:
        ValueError: If a field has the wrong type
    """
    if isinstance(message, StartRequest):
        seed = message.seed
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ValueError(f"Invalid start message: seed must be an integer, got {seed!r}")
        tags = message.tags
        if tags is not None and (
            not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags)
        ):
            raise ValueError(f"Invalid start message: tags must be a list of strings, got {tags!r}")
        if not isinstance(message.bag, bool):
            raise ValueError(f"Invalid start message: bag must be a boolean, got {message.bag!r}")
    elif isinstance(message, CommandRequest):
        if not isinstance(message.action, str):
            raise ValueError(f"Invalid command message: action must be a string, got {message.action!r}")
    elif isinstance(message, SubscribeRequest):
        if not isinstance(message.stream, bool):
            raise ValueError(f"Invalid subscribe message: stream must be a boolean, got {message.stream!r}")


def to_dict(obj: Any) -> Dict[str, Any]:
    """Convert dataclass to dict for JSON serialization.

    Args:
        obj: Dataclass instance

    Returns:
        Dictionary representation
    """
    return asdict(obj)
