import requests

from centerline.core.sop import (
    EMPTY_RESPONSE_MESSAGE,
    FAILURE_MESSAGE,
    MISSING_KEY_MESSAGE,
    build_sop_prompt,
    generate_sop,
)


class _Response:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.bad_json:
            raise ValueError("not json")
        return self.payload


class _StubSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def _reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def test_prompt_describes_the_point(point_factory):
    prompt = build_sop_prompt(point_factory(name="Guide rail width", phase_angle=45))
    assert "Guide rail width" in prompt
    assert "Phase angle: 45 degrees" in prompt
    assert "Infeed" in prompt


def test_missing_key_is_reported_without_a_request(point_factory, monkeypatch):
    monkeypatch.delenv("CENTERLINE_TEST_SOP_KEY", raising=False)
    http = _StubSession()
    assert generate_sop(point_factory(), session=http) == MISSING_KEY_MESSAGE
    assert http.calls == []


def test_generated_text_is_returned(point_factory, monkeypatch):
    monkeypatch.setenv("CENTERLINE_TEST_SOP_KEY", "secret")
    http = _StubSession(_Response(_reply("1. Measure with the gauge.")))

    text = generate_sop(point_factory(), session=http)

    assert text == "1. Measure with the gauge."
    call = http.calls[0]
    assert call["url"] == "https://sop.example.test/v1beta/models/test-model:generateContent"
    assert call["headers"] == {"x-goog-api-key": "secret"}
    assert call["timeout"] == 5
    assert "Point 1" in call["json"]["contents"][0]["parts"][0]["text"]


def test_transport_failure_becomes_message(point_factory, monkeypatch):
    monkeypatch.setenv("CENTERLINE_TEST_SOP_KEY", "secret")
    http = _StubSession(error=requests.ConnectionError("offline"))
    assert generate_sop(point_factory(), session=http) == FAILURE_MESSAGE


def test_http_error_and_bad_json_become_message(point_factory, monkeypatch):
    monkeypatch.setenv("CENTERLINE_TEST_SOP_KEY", "secret")
    assert generate_sop(point_factory(), session=_StubSession(_Response(status_code=503))) == FAILURE_MESSAGE
    assert generate_sop(point_factory(), session=_StubSession(_Response(bad_json=True))) == FAILURE_MESSAGE


def test_empty_reply_becomes_message(point_factory, monkeypatch):
    monkeypatch.setenv("CENTERLINE_TEST_SOP_KEY", "secret")
    http = _StubSession(_Response({"candidates": []}))
    assert generate_sop(point_factory(), session=http) == EMPTY_RESPONSE_MESSAGE
