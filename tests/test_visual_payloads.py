"""Tests for payload normalization between handle types."""

from __future__ import annotations

import pytest

from mediaflow.visual.payloads import (
    ImageList,
    ImageRef,
    ModelRef,
    Raw,
    Text,
    VideoRef,
    envelope_value,
    extract_typed,
    normalize,
    to_3d,
    to_envelope,
    to_image,
    to_text,
    to_video,
)


def test_to_text_shapes() -> None:
    assert to_text(None) == ""
    assert to_text("hi") == "hi"
    assert to_text(3) == "3"
    assert to_text(2.5) == "2.5"
    assert to_text(2.0) == "2"
    assert to_text(True) == "true"
    assert to_text(["a", "b"]) == "a\nb"
    assert to_text([1, 2]) == "[1,2]"
    assert to_text({"content": "hi"}) == "hi"
    assert to_text({"message": {"text": "nested"}}) == "nested"
    assert to_text({"other": 1}) == '{"other":1}'


def test_to_text_prefers_fields_in_priority_order() -> None:
    assert to_text({"output": "o", "text": "t"}) == "t"
    assert to_text({"output": "o", "message": "m"}) == "m"
    # A present-but-null field still wins.
    assert to_text({"text": None, "content": "c"}) == ""


def test_to_image_strings() -> None:
    assert to_image("not-a-url") is None
    assert to_image("https://x/y.png") == "https://x/y.png"
    assert to_image("data:image/png;base64,AAAA") == "data:image/png;base64,AAAA"
    assert to_image("file:///tmp/a.png") == "file:///tmp/a.png"
    assert to_image("data:video/mp4;base64,AAAA") is None


def test_to_image_lists_flatten_and_never_collapse() -> None:
    assert to_image(["https://a", ["https://b", "junk"], None, {"url": "https://c"}]) == [
        "https://a",
        "https://b",
        "https://c",
    ]
    assert to_image(["https://only"]) == ["https://only"]
    assert to_image(["junk"]) is None
    assert to_image([]) is None


def test_to_image_records() -> None:
    assert to_image({"url": "https://x/y.png"}) == "https://x/y.png"
    assert to_image({"image": "junk", "src": "http://s"}) == "http://s"
    assert to_image({"result": [{"url": "https://a"}, {"url": "https://b"}]}) == ["https://a", "https://b"]
    assert to_image({"data": "QUJD"}) == "data:image/png;base64,QUJD"
    assert to_image({"data": "QUJD", "mimeType": "image/jpeg"}) == "data:image/jpeg;base64,QUJD"
    assert to_image({"data": "QUJD", "mime_type": "image/webp"}) == "data:image/webp;base64,QUJD"
    assert to_image({"nothing": 1}) is None
    assert to_image(42) is None


def test_to_video_takes_first_list_element_only() -> None:
    assert to_video("https://v.mp4") == "https://v.mp4"
    assert to_video("data:video/mp4;base64,AA") == "data:video/mp4;base64,AA"
    assert to_video("data:image/png;base64,AA") is None
    assert to_video(["https://first.mp4", "https://second.mp4"]) == "https://first.mp4"
    assert to_video(["junk", "https://second.mp4"]) is None
    assert to_video([]) is None
    assert to_video({"video": {"url": "https://nested.mp4"}}) == "https://nested.mp4"


def test_to_3d_prefixes_and_fields() -> None:
    assert to_3d("data:model/gltf-binary;base64,AA") == "data:model/gltf-binary;base64,AA"
    assert to_3d("data:application/octet-stream;base64,AA") == "data:application/octet-stream;base64,AA"
    assert to_3d("https://m.zip") == "https://m.zip"
    assert to_3d("data:image/png;base64,AA") is None
    assert to_3d({"3d": "https://m.glb"}) == "https://m.glb"
    assert to_3d({"model": "junk", "url": "https://m.glb"}) == "https://m.glb"
    assert to_3d([{"model": "https://a.glb"}, "https://b.glb"]) == "https://a.glb"


def test_normalize_dispatch_and_any_identity() -> None:
    payload = {"anything": [1, 2]}
    assert normalize(payload, "any") is payload
    assert normalize(payload, None) is payload
    assert normalize({"text": "t"}, "text") == "t"
    assert normalize(["https://a"], "image") == ["https://a"]
    assert normalize(["https://a"], "video") == "https://a"
    assert normalize("https://m.glb", "3d") == "https://m.glb"


@pytest.mark.parametrize(
    "value,handle_type,expected",
    [
        ("plain text", "text", "plain text"),
        ("https://x/y.png", "image", "https://x/y.png"),
        (["https://a", "data:image/png;base64,AA"], "image", ["https://a", "data:image/png;base64,AA"]),
        ("https://v.mp4", "video", "https://v.mp4"),
        (["https://v.mp4", "https://w.mp4"], "video", "https://v.mp4"),
        ("https://m.glb", "3d", "https://m.glb"),
        (["https://m.glb"], "3d", "https://m.glb"),
    ],
)
def test_normalization_is_idempotent_on_canonical_values(value, handle_type, expected) -> None:
    once = normalize(value, handle_type)
    assert once == expected
    assert normalize(once, handle_type) == once


def test_extract_typed_prefers_usable_output() -> None:
    assert extract_typed({"output": {"url": "https://o.png"}, "image": "https://i.png"}, "image") == "https://o.png"
    assert extract_typed({"output": "junk", "image": "https://i.png"}, "image") == "https://i.png"
    assert extract_typed({"output": "", "prompt": "draw"}, "text") == "draw"
    assert extract_typed({"output": "said", "prompt": "draw"}, "text") == "said"


def test_extract_typed_field_priority() -> None:
    assert extract_typed({"content": "c", "prompt": "p"}, "text") == "c"
    assert extract_typed({}, "text") == ""
    assert extract_typed({"src": "https://s.png", "url": "https://u.png"}, "image") == "https://u.png"
    assert extract_typed({}, "image") is None
    assert extract_typed({"3d": "https://m.glb", "url": "https://u.zip"}, "3d") == "https://m.glb"
    assert extract_typed({"video": "", "src": "https://v.mp4"}, "video") == "https://v.mp4"


def test_extract_typed_any() -> None:
    assert extract_typed({"output": 5}, "any") == 5
    assert extract_typed({"prompt": "p"}, "any") == {"prompt": "p"}


def test_envelope_variants() -> None:
    assert to_envelope({"content": "hi"}, "text") == Text("hi")
    assert to_envelope("https://x.png", "image") == ImageRef("https://x.png")
    assert to_envelope(["https://a", "https://b"], "image") == ImageList(("https://a", "https://b"))
    assert to_envelope(["https://v.mp4"], "video") == VideoRef("https://v.mp4")
    assert to_envelope({"model": "https://m.glb"}, "3d") == ModelRef("https://m.glb")
    assert to_envelope({"k": 1}, "any") == Raw({"k": 1})
    assert to_envelope("junk", "image") is None
    assert to_envelope("junk", "video") is None


def test_envelope_value_unwraps_to_plain_values() -> None:
    assert envelope_value(ImageList(("https://a",))) == ["https://a"]
    assert envelope_value(Text("t")) == "t"
    assert envelope_value(None) is None
