"""
JSON codec for request and response bodies.

Decoding checks the payload against one of a fixed set of shapes using
pydantic TypeAdapters, so a structurally unexpected response is reported as
a ShapeError instead of surfacing later as an AttributeError or KeyError.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from entity_rest.errors import ShapeError, ValidationError


class JsonCodec:
    """
    Encodes request bodies and decodes response bodies.

    Instances are cheap and stateless; create one per client.
    """

    RECORD_LIST: TypeAdapter = TypeAdapter(List[Dict[str, Any]])
    RECORD: TypeAdapter = TypeAdapter(Dict[str, Any])
    STRING_LIST: TypeAdapter = TypeAdapter(List[Union[str, int]])
    STRING_MAP: TypeAdapter = TypeAdapter(Dict[str, Any])

    def __init__(self, ensure_ascii: bool = False) -> None:
        self.ensure_ascii = ensure_ascii

    def encode(self, payload: Any) -> str:
        return json.dumps(payload, ensure_ascii=self.ensure_ascii, separators=(",", ":"))

    def decode(self, text: str, shape: TypeAdapter) -> Any:
        """
        Parse `text` and check it against `shape`.

        Raises ValidationError for text that is not JSON and ShapeError for
        JSON of the wrong structure.
        """
        try:
            return shape.validate_json(text)
        except PydanticValidationError as exc:
            if any(error["type"] == "json_invalid" for error in exc.errors()):
                raise ValidationError(f"malformed JSON: {text[:200]!r}", cause=exc) from exc
            raise ShapeError(
                f"unexpected JSON shape ({exc.error_count()} error(s)): {text[:200]!r}",
                cause=exc,
            ) from exc


__all__ = ["JsonCodec"]
