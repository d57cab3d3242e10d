"""Payload normalization between semantic handle types.

Generation back-ends return loosely shaped results (plain strings, lists,
provider-specific records). These helpers coerce any such value into the
canonical shape a downstream handle of a given type can rely on:

- text:  a single string
- image: a reference string, or a list of reference strings
- video: a single reference string
- 3d:    a single reference string

A reference string is a data URI of the right media family or an
`http://`, `https://` or `file://` URL.

All functions here are total: malformed input degrades to `None`, `""` or a
stringified form instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .models import HandleType

_URL_PREFIXES: Tuple[str, ...] = ("http://", "https://", "file://")

IMAGE_PREFIXES: Tuple[str, ...] = ("data:image/",) + _URL_PREFIXES
VIDEO_PREFIXES: Tuple[str, ...] = ("data:video/",) + _URL_PREFIXES
MODEL_3D_PREFIXES: Tuple[str, ...] = ("data:model/", "data:application/octet-stream") + _URL_PREFIXES

TEXT_RECORD_FIELDS = ("text", "content", "message", "output")
IMAGE_RECORD_FIELDS = ("image", "url", "src", "output", "data", "result")
VIDEO_RECORD_FIELDS = ("video", "url", "src", "output", "data", "result")
MODEL_3D_RECORD_FIELDS = ("model", "url", "src", "output", "data", "result", "3d")

# Fallback fields used by `extract_typed` when a node's `output` is unusable.
EXTRACT_FIELDS: Dict[str, Tuple[str, ...]] = {
    HandleType.TEXT.value: ("text", "content", "message", "prompt", "output"),
    HandleType.IMAGE.value: ("image", "url", "src", "output"),
    HandleType.VIDEO.value: ("video", "url", "src", "output"),
    HandleType.MODEL_3D.value: ("model", "3d", "url", "src", "output"),
}


def _json(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(value)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_text(value: Any) -> str:
    """Coerce `value` to a single string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return _scalar_text(value)
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, str) for item in value):
            return "\n".join(value)
        return _json(list(value))
    if isinstance(value, Mapping):
        for field in TEXT_RECORD_FIELDS:
            if field in value:
                return to_text(value[field])
        return _json(dict(value))
    return str(value)


def to_image(value: Any) -> Union[str, List[str], None]:
    """Coerce `value` to an image reference or a flat list of references.

    A list input always yields a list (or None when nothing survives).
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith(IMAGE_PREFIXES) else None
    if isinstance(value, (list, tuple)):
        images: List[str] = []
        for item in value:
            normalized = to_image(item)
            if isinstance(normalized, list):
                images.extend(normalized)
            elif normalized:
                images.append(normalized)
        return images or None
    if isinstance(value, Mapping):
        for field in IMAGE_RECORD_FIELDS:
            if field in value:
                normalized = to_image(value[field])
                if normalized:
                    return normalized
        # Bare base64 payload, e.g. {"data": "...", "mimeType": "image/jpeg"}
        data = value.get("data")
        if isinstance(data, str):
            mime_type = value.get("mimeType") or value.get("mime_type") or "image/png"
            return f"data:{mime_type};base64,{data}"
    return None


def _to_single_ref(value: Any, prefixes: Tuple[str, ...], fields: Tuple[str, ...]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.startswith(prefixes) else None
    if isinstance(value, (list, tuple)):
        return _to_single_ref(value[0], prefixes, fields) if value else None
    if isinstance(value, Mapping):
        for field in fields:
            if field in value:
                normalized = _to_single_ref(value[field], prefixes, fields)
                if normalized:
                    return normalized
    return None


def to_video(value: Any) -> Optional[str]:
    """Coerce `value` to a single video reference (first element of a list)."""
    return _to_single_ref(value, VIDEO_PREFIXES, VIDEO_RECORD_FIELDS)


def to_3d(value: Any) -> Optional[str]:
    """Coerce `value` to a single 3D model reference (first element of a list)."""
    return _to_single_ref(value, MODEL_3D_PREFIXES, MODEL_3D_RECORD_FIELDS)


_NORMALIZERS = {
    HandleType.TEXT.value: to_text,
    HandleType.IMAGE.value: to_image,
    HandleType.VIDEO.value: to_video,
    HandleType.MODEL_3D.value: to_3d,
}


def normalize(value: Any, handle_type: Optional[str]) -> Any:
    """Coerce `value` to the canonical shape of `handle_type` (`any` is identity)."""
    t = handle_type.value if isinstance(handle_type, HandleType) else handle_type
    fn = _NORMALIZERS.get(t or "")
    return fn(value) if fn is not None else value


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def extract_typed(data: Mapping[str, Any], handle_type: Optional[str]) -> Any:
    """Pick the best value of `handle_type` out of a node's data record.

    The published `output` wins when it normalizes to something non-empty;
    otherwise the first non-empty field of a per-type priority list is used.
    """
    t = handle_type.value if isinstance(handle_type, HandleType) else handle_type
    if "output" in data and data["output"] is not None:
        normalized = normalize(data["output"], t)
        if not _is_empty(normalized):
            return normalized

    fields = EXTRACT_FIELDS.get(t or "")
    if fields is None:
        output = data.get("output")
        return output if not _is_empty(output) else dict(data)

    candidate = None
    for field in fields:
        if not _is_empty(data.get(field)):
            candidate = data[field]
            break
    return normalize(candidate, t)


# Canonical envelope: a tagged variant per semantic shape so consumers can
# dispatch on the class instead of probing the value's runtime shape.


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class ImageRef:
    value: str


@dataclass(frozen=True)
class ImageList:
    value: Tuple[str, ...]


@dataclass(frozen=True)
class VideoRef:
    value: str


@dataclass(frozen=True)
class ModelRef:
    value: str


@dataclass(frozen=True)
class Raw:
    value: Any


Envelope = Union[Text, ImageRef, ImageList, VideoRef, ModelRef, Raw]


def to_envelope(value: Any, handle_type: Optional[str]) -> Optional[Envelope]:
    """Normalize `value` for `handle_type` and wrap it in its envelope variant.

    Returns None when no canonical media reference can be made.
    """
    t = handle_type.value if isinstance(handle_type, HandleType) else handle_type
    if t == HandleType.TEXT.value:
        return Text(to_text(value))
    if t == HandleType.IMAGE.value:
        image = to_image(value)
        if isinstance(image, list):
            return ImageList(tuple(image))
        return ImageRef(image) if image else None
    if t == HandleType.VIDEO.value:
        video = to_video(value)
        return VideoRef(video) if video else None
    if t == HandleType.MODEL_3D.value:
        model = to_3d(value)
        return ModelRef(model) if model else None
    return Raw(value)


def envelope_value(envelope: Optional[Envelope]) -> Any:
    """Unwrap an envelope back to its plain JSON-friendly value."""
    if envelope is None:
        return None
    if isinstance(envelope, ImageList):
        return list(envelope.value)
    return envelope.value
