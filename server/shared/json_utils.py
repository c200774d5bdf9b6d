"""
Key-case conversion between Python records and the camelCase JSON API.
"""

from dataclasses import fields, is_dataclass
from typing import Any

from pydantic.alias_generators import to_camel, to_snake


def convert_keys(data: dict, direction: str) -> dict:
    """
    Converts the top-level keys of a dictionary.

    Nested values are left untouched because several record fields hold
    free-form client JSON (requirements, specs, social links) whose keys
    must round-trip unchanged.

    Args:
        data: The dictionary to convert.
        direction: "snake_to_camel" or "camel_to_snake".
    """
    if direction == "snake_to_camel":
        convert = to_camel
    elif direction == "camel_to_snake":
        convert = to_snake
    else:
        raise ValueError(f"Unknown key conversion direction: {direction}")
    return {convert(key): value for key, value in data.items()}


def to_json(value: Any) -> Any:
    """Serializes records (and lists of records) to camelCase dictionaries."""
    if is_dataclass(value) and not isinstance(value, type):
        return {
            to_camel(f.name): to_json(getattr(value, f.name)) for f in fields(value)
        }
    if isinstance(value, list):
        return [to_json(item) for item in value]
    return value
