import base64

import pytest

from backend.config import Settings
from backend.errors import ImageTimeoutError
from backend.images import ImageRenderer

from conftest import FakeClock, FakeResponse, FakeSession


def make_renderer(response, clock=None):
    settings = Settings(image_api_base="https://image.example", image_size=512, image_timeout=30)
    session = FakeSession(response)
    kwargs = {"clock": clock} if clock else {}
    return ImageRenderer(settings, session=session, **kwargs), session


def test_build_url_encodes_prompt():
    renderer, _ = make_renderer(FakeResponse())
    url = renderer.build_url("Push Ups, gym/background & light")
    assert url == (
        "https://image.example/prompt/Push%20Ups%2C%20gym%2Fbackground%20%26%20light"
        "?width=512&height=512&nologo=true"
    )


def test_render_returns_data_uri():
    resp = FakeResponse(chunks=[b"\xff\xd8\xff"], headers={"Content-Type": "image/jpeg"})
    renderer, session = make_renderer(resp)
    handle = renderer.render("Plank")
    assert handle == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff").decode()
    assert len(session.calls) == 1


def test_render_defaults_non_image_content_type():
    resp = FakeResponse(chunks=[b"\x89PNG"], headers={"Content-Type": "application/octet-stream"})
    renderer, _ = make_renderer(resp)
    assert renderer.render("Plank").startswith("data:image/jpeg;base64,")


def test_render_rejects_empty_description():
    renderer, session = make_renderer(FakeResponse())
    with pytest.raises(ValueError):
        renderer.render("  ")
    assert session.calls == []


def test_render_times_out():
    clock = FakeClock(0)
    resp = FakeResponse(chunks=[b"a", b"b"], on_chunk=lambda: clock.advance(16))
    renderer, _ = make_renderer(resp, clock=clock)
    with pytest.raises(ImageTimeoutError):
        renderer.render("Plank")
    assert resp.closed
