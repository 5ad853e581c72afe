"""Validate an inbound chat message and build the envelope broadcast to clients.

Wire format (both directions)::

    {"nombre": str, "mensaje": str, "color": str, "timestamp": str}
"""

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from .logger import get_logger
from .sanitizer import sanitize
from .scanner import looks_like_markup, process

logger = get_logger(__name__)

ANONYMOUS_NAME = "Anónimo"
DEFAULT_COLOR = "#000000"

SYSTEM_NAME = "Sistema"
SYSTEM_ERROR_BODY = "Error al procesar el mensaje"
SYSTEM_ERROR_COLOR = "#FF0000"


class MalformedEnvelopeError(ValueError):
    """Raised when an inbound message is not a JSON object."""

    pass


@dataclass(frozen=True)
class Envelope:
    """Normalized chat message, safe for direct DOM insertion on the client."""

    nombre: str
    mensaje: str
    color: str
    timestamp: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_envelope(raw_json: Any) -> dict[str, Any]:
    """
    Parse a raw inbound message.

    Raises:
        MalformedEnvelopeError: If the input is not a non-empty string holding
            a JSON object.
    """
    if not raw_json or not isinstance(raw_json, str):
        raise MalformedEnvelopeError("Message must be a non-empty JSON string")

    try:
        data = json.loads(raw_json)
    except (ValueError, RecursionError) as e:
        raise MalformedEnvelopeError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedEnvelopeError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _field(data: dict[str, Any], key: str, default: str) -> str:
    """Read a field, treating missing and falsy values as absent."""
    value = data.get(key)
    if not value:
        return default
    return value if isinstance(value, str) else str(value)


def build_envelope(
    data: dict[str, Any],
    default_color: str = DEFAULT_COLOR,
    anonymous_name: str = ANONYMOUS_NAME,
) -> Envelope:
    """
    Normalize a parsed message.

    The name is sanitized. The body goes through :func:`unachat.scanner.process`,
    which sanitizes it and expands URLs; a body that looks like markup is left
    untouched by the scanner and sanitized here instead.
    """
    nombre = sanitize(_field(data, "nombre", anonymous_name))

    body = _field(data, "mensaje", "")
    mensaje = process(body)
    if looks_like_markup(body):
        mensaje = sanitize(mensaje)

    return Envelope(
        nombre=nombre,
        mensaje=mensaje,
        color=_field(data, "color", default_color),
        timestamp=_field(data, "timestamp", utc_timestamp()),
    )


def fallback_envelope() -> Envelope:
    """Envelope sent in place of a message that could not be processed."""
    return Envelope(
        nombre=SYSTEM_NAME,
        mensaje=SYSTEM_ERROR_BODY,
        color=SYSTEM_ERROR_COLOR,
        timestamp=utc_timestamp(),
    )


def compose(
    raw_json: Any,
    default_color: str = DEFAULT_COLOR,
    anonymous_name: str = ANONYMOUS_NAME,
) -> str:
    """
    Turn a raw inbound message into the JSON envelope to broadcast.

    Never raises: malformed input yields the system error envelope.

    Args:
        raw_json: JSON text of a RawEnvelope.
        default_color: Color used when the message carries none.
        anonymous_name: Display name used when the message carries none.

    Returns:
        JSON text of the normalized envelope.
    """
    try:
        data = parse_envelope(raw_json)
    except MalformedEnvelopeError as e:
        logger.warning("Rejected message: %s", e)
        return fallback_envelope().to_json()

    return build_envelope(
        data, default_color=default_color, anonymous_name=anonymous_name
    ).to_json()
