from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from gemini_lens.models.generated_image import ImagePayload
from gemini_lens.remote.client import (
    NO_IMAGE_MESSAGE,
    GenerationError,
    ImageGenerationClient,
    NoImageGeneratedError,
    extract_image,
    guess_mime_type,
    is_image_media_type,
)


def _part(data=None, mime_type=None, text=None):
    inline = SimpleNamespace(data=data, mime_type=mime_type) if data is not None else None
    return SimpleNamespace(inline_data=inline, text=text)


def _response(*candidates_parts):
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts))) for parts in candidates_parts]
    )


def test_extract_first_inline_part_of_first_candidate():
    response = _response(
        [_part(text="here you go"), _part(b"one", "image/jpeg"), _part(b"two", "image/png")],
        [_part(b"other", "image/png")],
    )
    assert extract_image(response) == ImagePayload(data=b"one", mime_type="image/jpeg")


def test_extract_defaults_mime_type_to_png():
    assert extract_image(_response([_part(b"img")])).mime_type == "image/png"


def test_extract_ignores_later_candidates():
    response = _response([_part(text="only text")], [_part(b"img", "image/png")])
    assert extract_image(response) is None


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(candidates=[]),
        SimpleNamespace(candidates=None),
        SimpleNamespace(candidates=[SimpleNamespace(content=None)]),
        _response([]),
        _response([_part(b"", "image/png")]),
    ],
)
def test_extract_returns_none_without_image(response):
    assert extract_image(response) is None


def _client_returning(response=None, error=None) -> tuple[ImageGenerationClient, MagicMock]:
    sdk = MagicMock()
    if error is not None:
        sdk.models.generate_content.side_effect = error
    else:
        sdk.models.generate_content.return_value = response
    return ImageGenerationClient(model="gemini-test-image", client=sdk), sdk


def test_generate_image_sends_text_part():
    client, sdk = _client_returning(_response([_part(b"img", "image/png")]))
    payload = client.generate_image("studio lighting. red sneaker")
    assert payload.data == b"img"
    kwargs = sdk.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test-image"
    assert len(kwargs["contents"]) == 1
    assert kwargs["contents"][0].text == "studio lighting. red sneaker"
    assert kwargs["config"].response_modalities == ["IMAGE", "TEXT"]


def test_edit_image_sends_image_then_text():
    client, sdk = _client_returning(_response([_part(b"edited", "image/png")]))
    payload = client.edit_image(b"source", "image/jpeg", "make it snow")
    assert payload.data == b"edited"
    image_part, text_part = sdk.models.generate_content.call_args.kwargs["contents"]
    assert image_part.inline_data.data == b"source"
    assert image_part.inline_data.mime_type == "image/jpeg"
    assert text_part.text == "make it snow"


def test_text_only_response_raises_no_image():
    client, _ = _client_returning(_response([_part(text="I can't draw that")]))
    with pytest.raises(NoImageGeneratedError) as e:
        client.generate_image("x")
    assert str(e.value) == NO_IMAGE_MESSAGE
    assert isinstance(e.value, GenerationError)


def test_transport_error_is_wrapped_without_retry():
    cause = RuntimeError("429 RESOURCE_EXHAUSTED")
    client, sdk = _client_returning(error=cause)
    with pytest.raises(GenerationError) as e:
        client.generate_image("x")
    assert str(e.value) == "429 RESOURCE_EXHAUSTED"
    assert e.value.__cause__ is cause
    assert sdk.models.generate_content.call_count == 1


def test_transport_error_without_message_uses_class_name():
    client, _ = _client_returning(error=TimeoutError())
    with pytest.raises(GenerationError) as e:
        client.generate_image("x")
    assert str(e.value) == "TimeoutError"


@pytest.mark.parametrize(
    "name,expected",
    [("photo.JPG", "image/jpeg"), ("a.png", "image/png"), ("a.webp", "image/webp"), ("a.unknown", "image/jpeg")],
)
def test_guess_mime_type(name, expected):
    assert guess_mime_type(name) == expected


@pytest.mark.parametrize(
    "mime,expected", [("image/png", True), ("image/heic", True), ("application/pdf", False), ("", False), (None, False)]
)
def test_is_image_media_type(mime, expected):
    assert is_image_media_type(mime) is expected
