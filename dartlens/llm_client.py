import time
from typing import Any, Dict, Optional, Callable
from urllib.parse import urlparse, urlunparse
import requests


class LLMClient:
    def __init__(
        self,
        provider: str,
        model: str,
        api_key: str,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 2,
        post_fn: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.base_url = _normalize_base_url(base_url)
        self.timeout = timeout
        self.max_retries = max_retries
        self._post = post_fn or requests.post

    def generate_text(self, system_prompt: str, user_prompt: str, temperature: float = 0.4) -> str:
        provider = self.provider.lower().strip()
        if provider == "gemini":
            return self._gemini_generate_content(system_prompt, user_prompt, temperature)
        if provider == "deepseek":
            return self._openai_chat_completion(
                endpoint_path="/v1/chat/completions",
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=temperature,
            )
        raise ValueError(f"Unsupported provider: {self.provider}")

    def _gemini_generate_content(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {"temperature": temperature},
        }
        headers = {"Content-Type": "application/json"}
        data = self._post_with_retry(url, headers, payload, params={"key": self.api_key})
        candidates = data.get("candidates") or [{}]
        parts = ((candidates[0].get("content") or {}).get("parts")) or [{}]
        return str(parts[0].get("text") or "")

    def _openai_chat_completion(
        self,
        endpoint_path: str,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
    ) -> str:
        url = f"{self.base_url}{endpoint_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        data = self._post_with_retry(url, headers, payload)
        return data["choices"][0]["message"]["content"]

    def _post_with_retry(
        self,
        url: str,
        headers: Dict[str, Any],
        payload: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        last_err = None
        for attempt in range(self.max_retries + 1):
            try:
                kwargs: Dict[str, Any] = {"headers": headers, "json": payload, "timeout": self.timeout}
                if params:
                    kwargs["params"] = params
                resp = self._post(url, **kwargs)
                resp.raise_for_status()
                return resp.json()
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exc:
                last_err = exc
                if attempt < self.max_retries:
                    time.sleep(min(2 ** attempt, 4))
        raise last_err


def _normalize_base_url(base_url: str) -> str:
    """Accept root URL, /v1 URL, or full chat completions endpoint and normalize."""
    raw = (base_url or "").strip()
    if not raw:
        return ""

    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        return raw.rstrip("/")

    path = parsed.path.rstrip("/")
    lowered = path.lower()
    chat_suffix = "/chat/completions"
    v1_suffix = "/v1"
    v1beta_suffix = "/v1beta"

    if lowered.endswith(chat_suffix):
        path = path[: -len(chat_suffix)]
        lowered = path.lower()
    if lowered.endswith(v1_suffix):
        path = path[: -len(v1_suffix)]
    elif lowered.endswith(v1beta_suffix):
        path = path[: -len(v1beta_suffix)]

    normalized = parsed._replace(path=path, params="", query="", fragment="")
    return urlunparse(normalized).rstrip("/")
