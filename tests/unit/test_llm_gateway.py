from __future__ import annotations

import pytest
from pydantic import BaseModel

from config import LlmRoute
from llm_gateway import LlmGatewayError, call


class _Answer(BaseModel):
    value: int


class _Resp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _Client:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent = []

    def post(self, url, *, json, headers, timeout):
        self.sent.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)


def _route(**overrides):
    data = {
        "name": "stub",
        "base_url": "http://llm.local",
        "endpoint": "/v1/chat/completions",
        "model": "stub-model",
        "timeout_s": 3,
        "max_retries": 0,
    }
    data.update(overrides)
    return LlmRoute(**data)


def _content(text):
    return _Resp({"choices": [{"message": {"content": text}}]})


def test_call_strips_code_fences_and_validates():
    client = _Client(_content('```json\n{"value": 4}\n```'))
    result = call("How many?", _Answer, cfg=_route(), client=client)
    assert result.value == 4
    assert client.sent[0]["url"] == "http://llm.local/v1/chat/completions"
    assert client.sent[0]["timeout"] == 3


def test_call_sends_api_key_and_response_format(monkeypatch):
    monkeypatch.setenv("STUB_KEY", "secret")
    client = _Client(_content('{"value": 1}'))
    call("x", _Answer, cfg=_route(api_key_env="STUB_KEY", response_format="json_object"), client=client)
    assert client.sent[0]["headers"]["Authorization"] == "Bearer secret"
    assert client.sent[0]["json"]["response_format"] == {"type": "json_object"}


def test_error_status_raises_gateway_error():
    with pytest.raises(LlmGatewayError):
        call("x", _Answer, cfg=_route(), client=_Client(_Resp({}, status_code=500)))


def test_non_json_payload_raises_gateway_error():
    with pytest.raises(LlmGatewayError):
        call("x", _Answer, cfg=_route(), client=_Client(_Resp(ValueError("bad"))))


def test_validation_failure_after_retries_raises():
    client = _Client(_content('{"value": "many"}'), _content('{"other": 1}'))
    with pytest.raises(LlmGatewayError):
        call("x", _Answer, cfg=_route(max_retries=1), client=client)
    assert len(client.sent) == 2
