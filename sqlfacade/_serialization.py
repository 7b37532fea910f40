"""JSON encoding used by structured logging and event payloads."""

from typing import Any

import msgspec

__all__ = ("decode_json", "encode_json")

_encoder = msgspec.json.Encoder(enc_hook=str)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode ``data`` as JSON.

    Values msgspec cannot serialize natively are rendered with ``str()``.

    Args:
        data: Object to encode.
        as_bytes: Return the raw bytes instead of a decoded string.

    Returns:
        The JSON document.
    """
    encoded = _encoder.encode(data)
    return encoded if as_bytes else encoded.decode("utf-8")


def decode_json(data: "str | bytes") -> Any:
    """Decode a JSON document."""
    return _decoder.decode(data)
