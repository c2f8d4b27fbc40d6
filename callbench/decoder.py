# callbench/decoder.py
from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from callbench.contract import check_contract, load_document
from callbench.errors import DecodeError

M = TypeVar("M", bound=BaseModel)


def decode(body: str | bytes | bytearray, shape: type[M], *, strict: bool = False) -> M:
    """
    Decode a JSON response body into ``shape``.

    Permissive by default: unknown fields are dropped and missing ones keep
    the shape's defaults. ``strict=True`` rejects a body that lacks any field
    the shape declares, at any depth. Sequence order is kept as sent.
    """
    data = load_document(body)
    if strict:
        report = check_contract(data, shape, allow_additional_properties=True)
        if not report.valid:
            raise DecodeError(f"{shape.__name__}: " + "; ".join(report.errors))
    try:
        return shape.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"{shape.__name__}: {e.error_count()} field error(s): {e.errors()[0]['msg']}") from e
