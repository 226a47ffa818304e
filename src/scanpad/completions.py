from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from importlib.resources import files
from pathlib import Path
from typing import Mapping


class CompletionsReadError(Exception):
    """Problem reading the bundled field descriptions."""


def read_bundled_fields() -> dict[str, str]:
    """Read the template field descriptions shipped with scanpad.

    Raises:
        CompletionsReadError: If the data could not be read.

    Returns:
        Mapping of field name on to description.
    """
    try:
        data = files("scanpad").joinpath("data", "template_fields.json").read_text("utf-8")
        fields = json.loads(data)
    except Exception as error:
        raise CompletionsReadError(f"Failed to read template fields; {error}")
    return {str(key): str(description) for key, description in fields.items()}


def flatten_schema(schema: Mapping[str, object]) -> dict[str, str]:
    """Collect field descriptions from a JSON schema.

    Walks `properties`, `items`, and `allOf` / `anyOf` / `oneOf`, following
    local `$ref` pointers. The first description found for a field wins.

    Args:
        schema: A JSON schema.

    Returns:
        Mapping of field name on to description.
    """
    descriptions: dict[str, str] = {}
    walked: set[int] = set()

    def resolve(node: Mapping[str, object]) -> Mapping[str, object] | None:
        reference = node.get("$ref")
        if not isinstance(reference, str):
            return node
        if not reference.startswith("#/"):
            return None
        target: object = schema
        for part in reference[2:].split("/"):
            if not isinstance(target, Mapping) or part not in target:
                return None
            target = target[part]
        return target if isinstance(target, Mapping) else None

    def walk(node: object) -> None:
        if not isinstance(node, Mapping):
            return
        if (resolved := resolve(node)) is None or id(resolved) in walked:
            return
        walked.add(id(resolved))
        properties = resolved.get("properties")
        if isinstance(properties, Mapping):
            for key, sub_schema in properties.items():
                if not isinstance(sub_schema, Mapping):
                    continue
                target = resolve(sub_schema) if "$ref" in sub_schema else sub_schema
                description = sub_schema.get("description") or (
                    target.get("description") or target.get("title")
                    if target is not None
                    else None
                )
                if description and key not in descriptions:
                    descriptions[key] = str(description)
                walk(target)
        walk(resolved.get("items"))
        for combinator in ("allOf", "anyOf", "oneOf"):
            options = resolved.get(combinator)
            if isinstance(options, list):
                for option in options:
                    walk(option)

    walk(schema)
    return descriptions


@dataclass
class FieldReadResult:
    """Result of reading field descriptions, including any errors."""

    fields: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


async def read_field_descriptions(schema_path: Path | None = None) -> FieldReadResult:
    """Read field descriptions from the bundled data, and an optional JSON schema.

    Args:
        schema_path: Path to a JSON schema, or `None` for bundled fields only.

    Returns:
        FieldReadResult with the merged fields, and errors from the schema.
    """

    def read_fields() -> FieldReadResult:
        result = FieldReadResult()
        try:
            result.fields.update(read_bundled_fields())
        except CompletionsReadError as error:
            result.errors.append(str(error))

        if schema_path is not None:
            try:
                schema = json.loads(schema_path.read_text("utf-8"))
            except Exception as error:
                result.errors.append(f"Failed to read schema {schema_path}; {error}")
            else:
                if isinstance(schema, dict):
                    result.fields.update(flatten_schema(schema))
                else:
                    result.errors.append(
                        f"Failed to read schema {schema_path}; expected a JSON object"
                    )
        return result

    return await asyncio.to_thread(read_fields)


class FieldCompletions:
    """Suggests template fields for a prefix."""

    def __init__(self, fields: Mapping[str, str]) -> None:
        self._fields = dict(fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def match(self, prefix: str) -> list[tuple[str, str]]:
        """Get fields starting with a prefix.

        Args:
            prefix: Start of a field name (case insensitive).

        Returns:
            List of (field, description) tuples, sorted by field name.
        """
        prefix = prefix.lower()
        return sorted(
            (key, description)
            for key, description in self._fields.items()
            if key.lower().startswith(prefix)
        )
