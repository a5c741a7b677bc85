# routerdesk/infra/llm/router_client.py
from __future__ import annotations
import logging
from typing import Dict, List, Optional
import requests

from routerdesk.constants import DEFAULT_SERVER_URL, DEFAULT_TIMEOUT, CHAT_COMPLETIONS_PATH, MODELS_PATH, PROVIDERS_PATH
from .base import ChatMessage, TransportError, ProtocolError

log = logging.getLogger("chat.http")


def _error_message(r: requests.Response) -> str:
    # the router answers {"error": ...} or {"message": ...}; fall back to raw text
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if msg:
            return str(msg)
    text = (r.text or "").strip()
    return text or r.reason or f"HTTP {r.status_code}"


class RouterClient:
    """Thin `requests` client for the two router endpoints the console core needs."""

    def __init__(self, base_url: str = DEFAULT_SERVER_URL, *, api_key: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT, http: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def open_chat_stream(self, *, model: str, messages: List[ChatMessage]) -> requests.Response:
        """
        POST a streaming chat completion and return the live response.

        The caller owns the response and must close it. Raises TransportError
        when the server can't be reached, ProtocolError on a non-2xx status.
        """
        payload = {
            "model": model,
            "messages": [m.to_wire() for m in messages],
            "stream": True,
        }
        url = f"{self.base_url}{CHAT_COMPLETIONS_PATH}"
        log.debug("POST %s model=%s messages=%d", url, model, len(messages))
        try:
            r = self.http.post(url, json=payload, headers=self._headers(), stream=True, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc

        if not r.ok:
            msg = _error_message(r)
            r.close()
            raise ProtocolError(f"Streaming failed: {msg}", status_code=r.status_code)
        if r.raw is None:
            r.close()
            raise ProtocolError("Streaming failed: response has no body", status_code=r.status_code)
        return r

    def _get_list(self, path: str, what: str) -> List[Dict]:
        url = f"{self.base_url}{path}"
        log.debug("GET %s", url)
        try:
            r = self.http.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(str(exc)) from exc
        if not r.ok:
            raise ProtocolError(_error_message(r), status_code=r.status_code)
        try:
            data = r.json()
        except ValueError as exc:
            raise ProtocolError(f"{what} is not JSON: {exc}", status_code=r.status_code) from exc
        if not isinstance(data, list):
            raise ProtocolError(f"{what} is not a list", status_code=r.status_code)
        return [m for m in data if isinstance(m, dict)]

    def list_models(self) -> List[Dict]:
        """GET the catalog: [{provider_id, provider_name, name}, ...]."""
        return self._get_list(MODELS_PATH, "Catalog")

    def list_providers(self) -> List[Dict]:
        """GET providers: [{name, enabled, runtime_models, ...}, ...]."""
        return self._get_list(PROVIDERS_PATH, "Provider list")

    def close(self) -> None:
        self.http.close()
