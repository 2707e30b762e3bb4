"""JSON Schema validation of component payloads returned by registries."""

from __future__ import annotations

from typing import Any, Dict

from jsonschema import Draft7Validator

from registry.errors import RegistryError

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

COMPONENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "type": {"type": ["string", "null"]},
        "description": {"type": ["string", "null"]},
        "dependencies": _STRING_LIST,
        "devDependencies": _STRING_LIST,
        "registryDependencies": _STRING_LIST,
        "files": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "content": {"type": ["string", "null"]},
                    "type": {"type": ["string", "null"]},
                    "target": {"type": ["string", "null"]},
                    "path": {"type": ["string", "null"]},
                },
                "anyOf": [{"required": ["target"]}, {"required": ["path"]}],
            },
        },
    },
}

_VALIDATOR = Draft7Validator(COMPONENT_SCHEMA)


class SchemaError(RegistryError, ValueError):
    """Raised when a registry payload does not match the component schema."""


def validate_component(data: Any, source: str) -> None:
    """Validate ``data`` and raise on the first error.

    Args:
        data: Decoded JSON payload.
        source: Component name or URL, used in the error message.
    """
    errs = sorted(_VALIDATOR.iter_errors(data), key=lambda e: "/".join(str(p) for p in e.path))
    if errs:
        first = errs[0]
        path = "/".join([str(p) for p in first.path])
        raise SchemaError(f"Invalid component '{source}' at '{path}': {first.message}")
