"""
Inbound Command Schema Definitions

Decodes raw client frames into command dictionaries and checks that each
command carries the fields its handler needs.
"""

import json
from typing import Any, Dict, Tuple, Union

from ..errors import MalformedMessage, UnrecognizedMessageType
from ..utils.validation import require_text_field

# Required string fields per command type
COMMAND_FIELDS: Dict[str, Tuple[str, ...]] = {
    "join": ("name",),
    "chat": ("text",),
    "joke": (),
    "members": (),
    "priv": ("text",),
    "name": ("text",),
}


def decode_command(raw: Union[str, bytes]) -> Dict[str, Any]:
    """
    Decode one inbound frame.

    Args:
        raw: JSON text (or UTF-8 bytes) received from the client

    Returns:
        dict: The decoded command, guaranteed to carry a string "type"

    Raises:
        MalformedMessage: If the frame is not a JSON object with a type
        UnrecognizedMessageType: If the type is not a known command
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessage("Frame is not valid UTF-8") from e

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedMessage("Invalid JSON format") from e

    if not isinstance(data, dict):
        raise MalformedMessage("Message must be a JSON object")

    message_type = data.get("type")
    if not isinstance(message_type, str):
        raise MalformedMessage("Message is missing a string 'type'")

    if message_type not in COMMAND_FIELDS:
        raise UnrecognizedMessageType(message_type)

    for field_name in COMMAND_FIELDS[message_type]:
        require_text_field(data, field_name)

    return data
