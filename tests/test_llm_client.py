import requests
import pytest

from dartlens.llm_client import LLMClient


class Resp:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        return None

    def json(self):
        return self._payload


GEMINI_PAYLOAD = {"candidates": [{"content": {"parts": [{"text": "요약입니다"}]}}]}


def test_llm_client_retries_on_timeout():
    calls = {"count": 0}

    def fake_post(*_args, **_kwargs):
        calls["count"] += 1
        if calls["count"] < 3:
            raise requests.exceptions.Timeout("timeout")
        return Resp(GEMINI_PAYLOAD)

    client = LLMClient(
        provider="gemini",
        model="gemini-1.5-flash",
        api_key="key",
        base_url="https://generativelanguage.googleapis.com",
        timeout=1,
        max_retries=3,
        post_fn=fake_post,
    )
    assert client.generate_text("sys", "user") == "요약입니다"
    assert calls["count"] == 3


def test_llm_client_raises_after_exhausting_retries(monkeypatch):
    monkeypatch.setattr("dartlens.llm_client.time.sleep", lambda _s: None)

    def fake_post(*_args, **_kwargs):
        raise requests.exceptions.ConnectionError("down")

    client = LLMClient("gemini", "gemini-1.5-flash", "key", "https://x.test", max_retries=1, post_fn=fake_post)
    with pytest.raises(requests.exceptions.ConnectionError):
        client.generate_text("sys", "user")


def test_llm_client_gemini_passes_key_as_query_param():
    called = {}

    def fake_post(url, **kwargs):
        called["url"] = url
        called.update(kwargs)
        return Resp(GEMINI_PAYLOAD)

    client = LLMClient(
        provider="gemini",
        model="gemini-1.5-flash",
        api_key="secret",
        base_url="https://generativelanguage.googleapis.com/v1beta/",
        post_fn=fake_post,
    )
    client.generate_text("sys", "user")
    assert called["url"] == "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent"
    assert called["params"] == {"key": "secret"}
    assert called["json"]["contents"][0]["parts"][0]["text"] == "user"


def test_llm_client_gemini_empty_candidates_returns_empty_text():
    client = LLMClient("gemini", "m", "k", "https://x.test", post_fn=lambda *_a, **_k: Resp({}))
    assert client.generate_text("sys", "user") == ""


def test_llm_client_rejects_unknown_provider():
    client = LLMClient(provider="zhipu", model="GLM-4.7", api_key="k", base_url="https://open.bigmodel.cn")
    with pytest.raises(ValueError, match="Unsupported provider"):
        client.generate_text("sys", "user")


@pytest.mark.parametrize(
    "base_url",
    [
        "https://api.deepseek.com",
        "https://api.deepseek.com/",
        "https://api.deepseek.com/v1",
        "https://api.deepseek.com/v1/chat/completions",
    ],
)
def test_llm_client_normalizes_base_url_for_chat_completion_endpoint(base_url):
    called = {"url": ""}

    def fake_post(url, **_kwargs):
        called["url"] = url
        return Resp({"choices": [{"message": {"content": "ok"}}]})

    client = LLMClient(
        provider="deepseek",
        model="deepseek-chat",
        api_key="key",
        base_url=base_url,
        post_fn=fake_post,
    )

    assert client.generate_text("sys", "user") == "ok"
    assert called["url"] == "https://api.deepseek.com/v1/chat/completions"
