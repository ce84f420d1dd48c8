# tests/test_site_generator.py
"""
Tests for SiteGenerator with httpx.MockTransport in place of the completion API.
"""
import asyncio
import json

import httpx
import pytest

from site_engine.services.builder_system_prompt import BUILDER_SYSTEM_PROMPT
from site_engine.services.errors import (
    ConfigurationError,
    ErrorKind,
    MalformedOutputError,
    UpstreamUnavailableError,
)
from site_engine.services.site_artifact import SiteArtifact
from site_engine.services.site_generator import SiteGenerator, parse_site_artifact


def _run(coro):
    return asyncio.run(coro)


def _completion(content, status_code=200):
    body = {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }
    return httpx.Response(status_code, json=body)


def _generator(handler, **kwargs):
    kwargs.setdefault("api_key", "sk-test")
    return SiteGenerator(transport=httpx.MockTransport(handler), **kwargs)


def test_generate_returns_model_json_verbatim():
    reply = '{"html":"<h1>Brew</h1>","css":"h1{color:brown}","js":""}'
    generator = _generator(lambda request: _completion(reply))

    artifact = _run(generator.generate("a landing page for a coffee shop"))

    assert artifact == SiteArtifact(html="<h1>Brew</h1>", css="h1{color:brown}", js="")


def test_non_json_reply_is_malformed_output_with_raw_text():
    generator = _generator(lambda request: _completion("Sorry, I can't do that."))

    with pytest.raises(MalformedOutputError) as excinfo:
        _run(generator.generate("a landing page for a coffee shop"))

    err = excinfo.value
    assert err.kind == ErrorKind.MALFORMED_OUTPUT
    assert err.raw == "Sorry, I can't do that."
    payload = err.to_payload()
    assert payload["error"] == "Invalid LLM output"
    assert payload["raw"] == "Sorry, I can't do that."


def test_request_carries_system_prompt_model_and_credentials():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return _completion('{"html":"","css":"","js":""}')

    generator = _generator(
        handler,
        model="gpt-4.1",
        api_url="https://llm.example.test/v1/chat/completions",
        temperature=0.2,
        json_mode=True,
    )
    _run(generator.generate("portfolio for a potter"))

    assert seen["auth"] == "Bearer sk-test"
    assert seen["url"] == "https://llm.example.test/v1/chat/completions"
    body = seen["body"]
    assert body["model"] == "gpt-4.1"
    assert body["temperature"] == 0.2
    assert body["messages"] == [
        {"role": "system", "content": BUILDER_SYSTEM_PROMPT},
        {"role": "user", "content": "portfolio for a potter"},
    ]
    assert body["response_format"] == {"type": "json_object"}


def test_json_mode_off_omits_response_format():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return _completion('{"html":"","css":"","js":""}')

    _run(_generator(handler, json_mode=False).generate("x"))

    assert "response_format" not in seen["body"]


def test_fenced_json_reply_is_accepted():
    reply = '```json\n{"html": "<p>a</p>", "css": "", "js": "console.log(1)"}\n```'
    artifact = _run(_generator(lambda r: _completion(reply)).generate("x"))

    assert artifact.js == "console.log(1)"


def test_content_parts_are_joined():
    parts = [
        {"type": "reasoning", "text": "thinking about layout"},
        {"type": "text", "text": '{"html": "<p>a</p>", '},
        {"type": "text", "text": '"css": "", "js": ""}'},
    ]
    artifact = _run(_generator(lambda r: _completion(parts)).generate("x"))

    assert artifact.html == "<p>a</p>"


@pytest.mark.parametrize("reply", [
    '{"html": "<p>a</p>", "css": ""}',
    '{"html": "<p>a</p>", "css": "", "js": 3}',
    '["<p>a</p>", "", ""]',
    '',
])
def test_wrong_shapes_are_malformed(reply):
    with pytest.raises(MalformedOutputError) as excinfo:
        _run(_generator(lambda r: _completion(reply)).generate("x"))

    assert excinfo.value.raw == reply


def test_extra_keys_are_dropped():
    artifact = parse_site_artifact('{"html": "a", "css": "b", "js": "c", "notes": "hi"}')

    assert artifact.model_dump() == {"html": "a", "css": "b", "js": "c"}


def test_non_200_is_upstream_error():
    generator = _generator(lambda r: httpx.Response(401, text='{"error": "invalid api key"}'))

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        _run(generator.generate("x"))

    assert excinfo.value.kind == ErrorKind.UPSTREAM_UNREACHABLE
    assert excinfo.value.status_code == 502
    assert "invalid api key" in excinfo.value.details


def test_network_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        _run(_generator(handler).generate("x"))

    assert "connection refused" in excinfo.value.details


def test_timeout_is_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(UpstreamUnavailableError):
        _run(_generator(handler, timeout=1).generate("x"))


def test_unexpected_envelope_is_upstream_error():
    generator = _generator(lambda r: httpx.Response(200, json={"choices": []}))

    with pytest.raises(UpstreamUnavailableError):
        _run(generator.generate("x"))


def test_missing_api_key_is_configuration_error(monkeypatch):
    from site_engine.config import settings
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "")

    with pytest.raises(ConfigurationError):
        SiteGenerator()


def test_any_2xx_status_is_accepted():
    generator = _generator(lambda r: httpx.Response(201, json={
        "choices": [{"message": {"role": "assistant", "content": '{"html":"","css":"","js":""}'}}]
    }))

    artifact = _run(generator.generate("x"))

    assert artifact == SiteArtifact(html="", css="", js="")
