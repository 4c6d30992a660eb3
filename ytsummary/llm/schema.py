"""
Translate an output-shape contract into a Gemini ``responseSchema``.

A contract is either a Pydantic model class (introspected with
``model_json_schema()``) or a JSON-schema dict. The translation is pure and
permissive: unknown shapes become strings instead of raising.

Known limitation: Gemini has no true union output, so a union with more
than one non-null variant is narrowed to its first variant. Recursive models
are expanded once; the inner self-reference becomes a string.
"""

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel

from ytsummary.llm.errors import SchemaConversionError

logger = logging.getLogger(__name__)


class SchemaType(str, Enum):
    OBJECT = "OBJECT"
    ARRAY = "ARRAY"
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"


def contract_to_json_schema(contract: Any) -> Dict[str, Any]:
    """Introspect a contract into a JSON-schema dict."""
    if isinstance(contract, dict):
        return contract
    if isinstance(contract, type) and issubclass(contract, BaseModel):
        try:
            return contract.model_json_schema()
        except Exception as e:
            raise SchemaConversionError(f"Schema conversion failed: {e}") from e
    raise SchemaConversionError(
        f"Schema conversion failed: unsupported contract type {type(contract).__name__}"
    )


def to_provider_schema(contract: Any) -> Dict[str, Any]:
    """Contract -> Gemini schema. Raises SchemaConversionError on malformed input."""
    json_schema = contract_to_json_schema(contract)
    try:
        return convert_to_gemini_schema(json_schema, json_schema.get("$defs", {}))
    except SchemaConversionError:
        raise
    except Exception as e:
        raise SchemaConversionError(f"Schema conversion failed: {e}") from e


def _resolve_ref(ref: str, defs: Dict[str, Any]) -> Dict[str, Any]:
    prefix = "#/$defs/"
    if not ref.startswith(prefix) or ref[len(prefix):] not in defs:
        raise SchemaConversionError(f"Schema conversion failed: unresolvable $ref {ref!r}")
    return defs[ref[len(prefix):]]


def _with_description(source: Dict[str, Any], converted: Dict[str, Any]) -> Dict[str, Any]:
    description = source.get("description")
    if isinstance(description, str) and "description" not in converted:
        converted["description"] = description
    return converted


def convert_to_gemini_schema(
    json_schema: Dict[str, Any],
    defs: Optional[Dict[str, Any]] = None,
    expanding: FrozenSet[str] = frozenset(),
) -> Dict[str, Any]:
    """Recursively convert one JSON-schema node."""
    defs = defs or {}

    if "$ref" in json_schema:
        ref = json_schema["$ref"]
        target = _resolve_ref(ref, defs)
        if ref in expanding:
            # Self-reference: Gemini schemas cannot recurse, so the cycle is cut here
            logger.debug(f"Recursive $ref {ref!r} falls back to string")
            return _with_description(json_schema, {"type": SchemaType.STRING.value})
        # Sibling keys (e.g. a field description) override the referenced node
        merged = {**target, **{k: v for k, v in json_schema.items() if k != "$ref"}}
        return convert_to_gemini_schema(merged, defs, expanding | {ref})

    all_of = json_schema.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1:
        merged = {**all_of[0], **{k: v for k, v in json_schema.items() if k != "allOf"}}
        return convert_to_gemini_schema(merged, defs, expanding)

    variants = json_schema.get("anyOf") or json_schema.get("oneOf")
    if variants:
        non_null = [s for s in variants if s.get("type") != "null"]
        if len(non_null) == 1:
            converted = convert_to_gemini_schema(non_null[0], defs, expanding)
            converted["nullable"] = True
            return _with_description(json_schema, converted)
        if non_null:
            logger.debug(f"Narrowing union of {len(non_null)} variants to the first one")
            return _with_description(json_schema, convert_to_gemini_schema(non_null[0], defs, expanding))

    node_type = json_schema.get("type")
    if isinstance(node_type, list):
        non_null_types = [t for t in node_type if t != "null"]
        narrowed = dict(json_schema, type=non_null_types[0] if non_null_types else None)
        converted = convert_to_gemini_schema(narrowed, defs, expanding)
        if len(non_null_types) < len(node_type):
            converted["nullable"] = True
        return converted

    if node_type == "object":
        properties = {
            key: convert_to_gemini_schema(value, defs, expanding)
            for key, value in (json_schema.get("properties") or {}).items()
        }
        return _with_description(json_schema, {
            "type": SchemaType.OBJECT.value,
            "properties": properties,
            "required": list(json_schema.get("required") or []),
        })

    if node_type == "array":
        items = json_schema.get("items")
        array_schema: Dict[str, Any] = {
            "type": SchemaType.ARRAY.value,
            "items": convert_to_gemini_schema(items, defs, expanding) if isinstance(items, dict) else {"type": SchemaType.STRING.value},
        }
        for bound in ("minItems", "maxItems"):
            if isinstance(json_schema.get(bound), int) and not isinstance(json_schema.get(bound), bool):
                array_schema[bound] = json_schema[bound]
        return _with_description(json_schema, array_schema)

    if node_type == "string":
        string_schema: Dict[str, Any] = {"type": SchemaType.STRING.value}
        if isinstance(json_schema.get("pattern"), str):
            string_schema["pattern"] = json_schema["pattern"]
        if isinstance(json_schema.get("enum"), list):
            string_schema["format"] = "enum"
            string_schema["enum"] = [str(v) for v in json_schema["enum"]]
        return _with_description(json_schema, string_schema)

    if node_type in ("number", "integer"):
        return _with_description(json_schema, {"type": SchemaType.NUMBER.value})

    if node_type == "boolean":
        return _with_description(json_schema, {"type": SchemaType.BOOLEAN.value})

    return _with_description(json_schema, {"type": SchemaType.STRING.value})
