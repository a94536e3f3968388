import json

import httpx
import pytest

from gemini_chat.domain.exceptions import NetworkError, ResponseParseError
from gemini_chat.domain.models import CompletionFailure, CompletionRequest, CompletionSuccess
from gemini_chat.providers.gemini_client import GeminiClient


ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"


class SettingsStub:
    gemini_api_key = "test-key-123456"
    gemini_endpoint_url = ENDPOINT
    gemini_placeholder_keys = ["YOUR_API_KEY"]
    http_timeout = 1.0


def _envelope(*candidates):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in parts]}} for parts in candidates]}


def _client_with(handler, cfg=None):
    return GeminiClient(cfg or SettingsStub(), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_send_returns_first_candidate_text():
    def handler(request):
        return httpx.Response(200, json=_envelope(["first", "second part"], ["other candidate"]))

    res = await _client_with(handler).send("Hello")
    assert isinstance(res, CompletionSuccess)
    assert res.ok
    assert res.text == "first"


@pytest.mark.asyncio
async def test_send_builds_request(monkeypatch):
    captured = {}

    class Resp:
        status_code = 200
        content = json.dumps(_envelope(["ok"])).encode()

        def json(self):
            return json.loads(self.content)

    class AsyncClient:
        def __init__(self, *a, **kw):
            captured["client_kwargs"] = kw

        async def __aenter__(self):
            return self

        async def __aexit__(self, *a):
            return False

        async def post(self, url, json=None, headers=None):
            captured["url"] = url
            captured["json"] = json
            captured["headers"] = headers
            return Resp()

    monkeypatch.setattr("httpx.AsyncClient", AsyncClient)
    res = await GeminiClient(SettingsStub()).send("  Hello  ")
    assert res.ok
    assert captured["url"] == ENDPOINT
    # prompt 原样发送，不做裁剪
    assert captured["json"] == {"contents": [{"parts": [{"text": "  Hello  "}]}]}
    assert captured["headers"]["Content-Type"] == "application/json"
    assert captured["headers"]["X-goog-api-key"] == "test-key-123456"
    assert captured["client_kwargs"]["timeout"] == 1.0


@pytest.mark.parametrize("key", [None, "", "   ", "YOUR_API_KEY", "clé-secrète-123", "key-with\nnewline"])
@pytest.mark.asyncio
async def test_send_unconfigured_makes_no_request(key):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_envelope(["never"]))

    cfg = SettingsStub()
    cfg.gemini_api_key = key
    res = await _client_with(handler, cfg).send("Hello")
    assert isinstance(res, CompletionFailure)
    assert res.kind == "unconfigured"
    assert not res.retryable
    assert calls == []


@pytest.mark.parametrize("url", ["not-a-url", "https://", "ftp://example.test/models/x:generateContent"])
@pytest.mark.asyncio
async def test_send_invalid_endpoint_is_unconfigured(url):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_envelope(["never"]))

    cfg = SettingsStub()
    cfg.gemini_endpoint_url = url
    res = await _client_with(handler, cfg).send("Hello")
    assert res.kind == "unconfigured"
    assert calls == []


@pytest.mark.asyncio
async def test_send_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    res = await _client_with(handler).send("Hello")
    assert res.kind == "transport"
    assert res.message == "connection refused"
    assert res.retryable
    assert res.http_status is None


@pytest.mark.asyncio
async def test_send_timeout_is_transport():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    res = await _client_with(handler).send("Hello")
    assert res.kind == "transport"


@pytest.mark.asyncio
async def test_send_empty_body():
    def handler(request):
        return httpx.Response(200, content=b"")

    res = await _client_with(handler).send("Hello")
    assert res.kind == "no_data"
    assert res.retryable


@pytest.mark.parametrize(
    "body",
    [
        b'{"candidates": []}',
        b"{}",
        b"not json",
        b"[1, 2]",
        b'{"candidates": [{"content": {"parts": []}}]}',
        b'{"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]}',
    ],
)
@pytest.mark.asyncio
async def test_send_parse_errors(body):
    def handler(request):
        return httpx.Response(200, content=body)

    res = await _client_with(handler).send("Hello")
    assert res.kind == "parse_error"
    assert not res.retryable
    assert res.message.startswith("Failed to parse response")
    assert res.raw_body == body.decode()


@pytest.mark.asyncio
async def test_send_api_error_body_is_parse_error_with_detail():
    def handler(request):
        return httpx.Response(
            429,
            json={"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
        )

    res = await _client_with(handler).send("Hello")
    assert res.kind == "parse_error"
    assert res.http_status == 429
    assert "RESOURCE_EXHAUSTED" in res.message
    assert "Quota exceeded" in res.message


@pytest.mark.asyncio
async def test_send_blocked_candidate_names_finish_reason():
    def handler(request):
        return httpx.Response(200, json={"candidates": [{"finishReason": "SAFETY"}]})

    res = await _client_with(handler).send("Hello")
    assert res.kind == "parse_error"
    assert "SAFETY" in res.message


@pytest.mark.asyncio
async def test_send_ignores_extra_fields():
    def handler(request):
        body = _envelope(["hi"])
        body["candidates"][0]["finishReason"] = "STOP"
        body["usageMetadata"] = {"totalTokenCount": 3}
        return httpx.Response(200, json=body)

    res = await _client_with(handler).send("Hello")
    assert res.text == "hi"
    assert res.finish_reason == "STOP"


@pytest.mark.asyncio
async def test_generate_raises_domain_errors():
    def refuse(request):
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(NetworkError):
        await _client_with(refuse).generate(CompletionRequest(prompt="x"))

    def garbage(request):
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(ResponseParseError):
        await _client_with(garbage).generate(CompletionRequest(prompt="x"))


def test_endpoint_from_model_name():
    class ModelSettings:
        gemini_api_key = "k"
        gemini_endpoint_url = None
        gemini_base_url = "https://example.test/v1beta/"
        default_model = "chat-pro"

    assert GeminiClient(ModelSettings())._endpoint() == "https://example.test/v1beta/models/gemini-2.5-pro:generateContent"
