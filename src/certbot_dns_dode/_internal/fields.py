"""JSON fields shared by the DODE wire objects."""
from collections.abc import Mapping
from typing import Any

import josepy as jose


class JSONObject(jose.JSONObjectWithFields):
    """JSON object that refuses to decode anything but a JSON object."""

    @classmethod
    def from_json(cls, jobj: Any) -> Any:
        if not isinstance(jobj, Mapping):
            raise jose.DeserializationError('Expected a JSON object, got {0!r}'.format(jobj))
        return super().from_json(jobj)


class String(jose.Field):
    """Optional string field.

    Missing members and ``null`` decode to the empty string.

    """

    def __init__(self, json_name: str) -> None:
        super().__init__(json_name=json_name, default='', omitempty=True)

    @classmethod
    def default_decoder(cls, value: Any) -> str:
        if value is None:
            return ''
        if not isinstance(value, str):
            raise jose.DeserializationError('Expected a string, got {0!r}'.format(value))
        return value


class Boolean(jose.Field):
    """Boolean field, ``false`` unless present."""

    def __init__(self, json_name: str, omitempty: bool = True) -> None:
        super().__init__(json_name=json_name, default=False, omitempty=omitempty)

    @classmethod
    def default_decoder(cls, value: Any) -> bool:
        if value is None:
            return False
        if not isinstance(value, bool):
            raise jose.DeserializationError('Expected a boolean, got {0!r}'.format(value))
        return value


def string(json_name: str) -> Any:
    """Generates a type-friendly String field."""
    return String(json_name)


def boolean(json_name: str, omitempty: bool = True) -> Any:
    """Generates a type-friendly Boolean field."""
    return Boolean(json_name, omitempty)
