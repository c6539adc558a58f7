"""Edge handle codec.

The builder stores each edge endpoint as a JSON object serialized to a string in
which every double quote is replaced by ``œ``, so the handle can sit inside the
outer flow JSON unescaped. The builder compares handles byte for byte, so
``encode_handle`` must reproduce its compact serialization exactly and
``decode_handle`` must invert it.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

HANDLE_QUOTE = "œ"


class HandleEncodingError(ValueError):
    pass


def encode_handle(descriptor: Dict[str, Any]) -> str:
    raw = json.dumps(descriptor, separators=(",", ":"), ensure_ascii=False)
    if HANDLE_QUOTE in raw:
        raise HandleEncodingError(f"Handle values may not contain the reserved character {HANDLE_QUOTE!r}")
    return raw.replace('"', HANDLE_QUOTE)


def decode_handle(handle: str) -> Dict[str, Any]:
    if not isinstance(handle, str) or not handle:
        raise HandleEncodingError("Handle must be a non-empty string")
    try:
        value = json.loads(handle.replace(HANDLE_QUOTE, '"'))
    except json.JSONDecodeError as e:
        raise HandleEncodingError(f"Handle is not valid encoded JSON: {e.msg}") from e
    if not isinstance(value, dict):
        raise HandleEncodingError("Handle must decode to a JSON object")
    return value


class SourceHandle(BaseModel):
    """Output port descriptor. Fields are declared in the builder's key order."""

    model_config = ConfigDict(extra="allow")

    dataType: str
    id: str
    name: str
    output_types: List[str]

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.id, self.name)

    def to_handle(self) -> str:
        return encode_handle(self.model_dump())

    @classmethod
    def from_handle(cls, handle: str) -> "SourceHandle":
        return cls.model_validate(decode_handle(handle))


class TargetHandle(BaseModel):
    """Input port descriptor. ``inputTypes`` may be null for non-handle fields."""

    model_config = ConfigDict(extra="allow")

    fieldName: str
    id: str
    inputTypes: Optional[List[str]] = None
    type: str

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.id, self.fieldName)

    @property
    def accepted_types(self) -> List[str]:
        return list(self.inputTypes) if self.inputTypes else [self.type]

    def to_handle(self) -> str:
        return encode_handle(self.model_dump())

    @classmethod
    def from_handle(cls, handle: str) -> "TargetHandle":
        return cls.model_validate(decode_handle(handle))


def edge_id(source_id: str, source_handle: str, target_id: str, target_handle: str) -> str:
    return f"reactflow__edge-{source_id}{source_handle}-{target_id}{target_handle}"


def build_edge(source: SourceHandle, target: TargetHandle) -> Dict[str, Any]:
    source_handle = source.to_handle()
    target_handle = target.to_handle()
    return {
        "animated": False,
        "className": "",
        "data": {
            "sourceHandle": source.model_dump(),
            "targetHandle": target.model_dump(),
        },
        "id": edge_id(source.id, source_handle, target.id, target_handle),
        "selected": False,
        "source": source.id,
        "sourceHandle": source_handle,
        "target": target.id,
        "targetHandle": target_handle,
    }
