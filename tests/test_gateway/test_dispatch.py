"""Tests for the path dispatcher."""

import logging

import pytest

from gencache.dispatch import CORS_HEADERS, Dispatcher, error_response, parse_path
from gencache.errors.exceptions import PermanentUpstreamError, ValidationError
from gencache.types import ModelKind


class TestParsePath:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/image/a%20cat", (ModelKind.IMAGE, "a cat")),
            ("/text/hello", (ModelKind.TEXT, "hello")),
            ("claude/what%3F", (ModelKind.CLAUDE, "what?")),
            ("/claude/hi?x=1", (ModelKind.CLAUDE, "hi")),
            ("/image/", (ModelKind.IMAGE, "")),
        ],
    )
    def test_known_prefixes(self, path, expected):
        assert parse_path(path) == expected

    @pytest.mark.parametrize("path", ["/", "/video/cat", "/images/cat", "image"])
    def test_unknown_prefix(self, path):
        assert parse_path(path) is None


class TestErrorResponse:
    def test_validation_is_400(self):
        response = error_response(ValidationError("Please provide a valid prompt."))
        assert response.status == 400
        assert response.body == "Please provide a valid prompt."

    def test_upstream_is_500_with_detail(self):
        response = error_response(PermanentUpstreamError("Backend error: 500 - boom", http_status=500))
        assert response.status == 500
        assert response.body == "An internal server error occurred: Backend error: 500 - boom"

    def test_unexpected_exception(self):
        response = error_response(RuntimeError("kaput"))
        assert response.status == 500
        assert "kaput" in response.body


class TestDispatcher:
    async def test_options_preflight(self, make_gateway, fake_backend, claude_body):
        backend = fake_backend(claude_body("x"))
        response = await Dispatcher(make_gateway(backend)).dispatch("/claude/hi", method="OPTIONS")
        assert response.status == 204
        assert response.headers == CORS_HEADERS
        assert backend.calls == []

    async def test_method_not_allowed(self, make_gateway, fake_backend, claude_body):
        dispatcher = Dispatcher(make_gateway(fake_backend(claude_body("x"))))
        response = await dispatcher.dispatch("/claude/hi", method="POST")
        assert response.status == 405

    async def test_unknown_prefix_is_400(self, make_gateway, fake_backend, claude_body):
        dispatcher = Dispatcher(make_gateway(fake_backend(claude_body("x"))))
        response = await dispatcher.dispatch("/video/cat")
        assert response.status == 400
        assert "/image/{prompt}" in response.body

    async def test_miss_then_hit_headers(self, make_gateway, fake_backend, claude_body):
        dispatcher = Dispatcher(make_gateway(fake_backend(claude_body("meow"))))

        first = await dispatcher.dispatch("/claude/a%20cat")
        second = await dispatcher.dispatch("/claude/a%20cat")

        assert first.status == 200
        assert first.body == "meow"
        assert first.headers["X-Cache"] == "MISS"
        assert second.headers["X-Cache"] == "HIT"
        assert first.headers["ETag"] == second.headers["ETag"]
        assert first.headers["Access-Control-Allow-Origin"] == "*"
        assert first.headers["Content-Type"] == "text/plain; charset=utf-8"

    async def test_image_response(self, make_gateway, fake_backend, titan_body, png_bytes):
        dispatcher = Dispatcher(make_gateway(fake_backend(titan_body(png_bytes))))
        response = await dispatcher.dispatch("/image/sunset")
        assert response.status == 200
        assert response.body == png_bytes
        assert response.headers["Content-Type"] == "image/png"

    @pytest.mark.parametrize("path", ["/claude/", "/image/favicon.ico"])
    async def test_invalid_prompt_is_400(self, make_gateway, fake_backend, claude_body, path):
        backend = fake_backend(claude_body("x"))
        response = await Dispatcher(make_gateway(backend)).dispatch(path)
        assert response.status == 400
        assert response.body == "Please provide a valid prompt."
        assert backend.calls == []

    async def test_backend_failure_is_500(self, make_gateway, fake_backend, claude_body):
        backend = fake_backend(claude_body("x"), failures=[400])
        response = await Dispatcher(make_gateway(backend)).dispatch("/claude/hi")
        assert response.status == 500
        assert response.body.startswith("An internal server error occurred: Backend error: 400")

    async def test_only_unexpected_errors_are_logged(self, make_gateway, fake_backend, claude_body, caplog):
        backend = fake_backend(claude_body("x"), failures=[500])
        dispatcher = Dispatcher(make_gateway(backend))

        with caplog.at_level(logging.ERROR, logger="gencache.dispatch"):
            await dispatcher.dispatch("/claude/favicon.ico")
            assert not [r for r in caplog.records if r.name == "gencache.dispatch"]

            await dispatcher.dispatch("/claude/hi")
            assert [r for r in caplog.records if r.name == "gencache.dispatch"]
