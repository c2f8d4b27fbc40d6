# callbench/contract.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from jsonschema import Draft202012Validator
from pydantic import BaseModel

from callbench.errors import DecodeError, ValidationFailure


def load_document(body: str | bytes | bytearray) -> Any:
    """Parse a raw JSON body; anything unparseable is a DecodeError."""
    try:
        return json.loads(body)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"response body is not valid JSON: {e}") from e


def _tighten(node: Any, allow_additional_properties: bool) -> None:
    # every object schema, including the ones under $defs, gets the same rules
    if isinstance(node, dict):
        props = node.get("properties")
        if isinstance(props, dict):
            node["required"] = list(props)
            node["additionalProperties"] = allow_additional_properties
        for v in node.values():
            _tighten(v, allow_additional_properties)
    elif isinstance(node, list):
        for v in node:
            _tighten(v, allow_additional_properties)


def generate_schema(shape: type[BaseModel], *, allow_additional_properties: bool = False) -> dict[str, Any]:
    """
    JSON schema for ``shape`` where every declared field is required.

    ``allow_additional_properties`` decides whether fields the shape does not
    declare are tolerated; missing declared fields are always a violation.
    """
    schema = shape.model_json_schema()
    _tighten(schema, allow_additional_properties)
    return schema


@lru_cache(maxsize=64)
def _validator_for(shape: type[BaseModel], allow_additional_properties: bool) -> Draft202012Validator:
    return Draft202012Validator(generate_schema(shape, allow_additional_properties=allow_additional_properties))


def _errors(validator: Draft202012Validator, document: Any, raw: bool) -> list[str]:
    # bytes are always a body; str only when the caller says it is one
    if isinstance(document, (bytes, bytearray)) or (raw and isinstance(document, str)):
        document = load_document(document)
    errs = sorted(validator.iter_errors(document), key=lambda e: "/".join(map(str, e.path)))
    return [f"/{'/'.join(map(str, e.path))}: {e.message}" for e in errs]


def validation_errors(document: Any, schema: dict[str, Any], *, raw: bool = False) -> list[str]:
    return _errors(Draft202012Validator(schema), document, raw)


def validate(document: Any, schema: dict[str, Any], *, raw: bool = False) -> bool:
    """``raw=True`` treats a str document as JSON text to parse first."""
    return not validation_errors(document, schema, raw=raw)


@dataclass(frozen=True)
class ContractReport:
    shape: str
    allow_additional_properties: bool
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def raise_for_failure(self) -> None:
        if self.errors:
            raise ValidationFailure(self.errors)


def check_contract(
    document: Any,
    shape: type[BaseModel],
    *,
    allow_additional_properties: bool = False,
    raw: bool = False,
) -> ContractReport:
    errs = _errors(_validator_for(shape, allow_additional_properties), document, raw)
    return ContractReport(
        shape=shape.__name__,
        allow_additional_properties=allow_additional_properties,
        errors=errs,
    )
