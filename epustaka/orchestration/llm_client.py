"""
Chat-completions wrapper (xAI Grok or Groq) used to write narrative reports.
"""

from __future__ import annotations

import json
import time
from typing import Any

import requests

from epustaka.utils.config import (
    llm_api_key,
    llm_base_url,
    llm_max_tokens,
    llm_model,
)
from epustaka.utils.logger import get_logger

logger = get_logger()

MAX_RETRIES = 3
# Statuses that will not improve by retrying.
_NO_RETRY_STATUSES = {400, 401, 403, 404, 429}

_CREDENTIAL_MARKERS = ("api_key_invalid", "invalid api key", "incorrect api key", "invalid_api_key", "unauthorized")
_QUOTA_MARKERS = ("quota", "rate limit", "rate_limit", "credits", "licenses", "tokens per day")


class ReportGenerationError(RuntimeError):
    """Raised when the text-generation service fails to produce a report."""

    def __init__(self, message: str, status: int | None = None, original: Exception | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.original = original


class ReportCredentialsError(ReportGenerationError):
    """The API key is missing, invalid or not allowed to use the model."""


class ReportQuotaError(ReportGenerationError):
    """The account is out of quota, credits or rate limit."""


def _error_message(body: str | None) -> str:
    if not body:
        return ""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, ValueError):
        return body
    err = data.get("error") if isinstance(data, dict) else None
    if isinstance(err, dict):
        return str(err.get("message") or err.get("code") or body)
    if isinstance(err, str):
        return err
    return body


def classify_failure(status: int | None, body: str | None, original: Exception | None = None) -> ReportGenerationError:
    """Map a failed call to the matching ReportGenerationError subclass."""
    text = f"{_error_message(body)} {original or ''}".lower()
    if any(m in text for m in _QUOTA_MARKERS) or status == 429:
        return ReportQuotaError(f"Quota or rate limit reached: {_error_message(body) or original}", status, original)
    if status in (401, 403) or any(m in text for m in _CREDENTIAL_MARKERS):
        return ReportCredentialsError(f"API key rejected: {_error_message(body) or original}", status, original)
    msg = f"LLM API failed: {original}"
    if body:
        msg += f"\n\nAPI response body:\n{body}"
    return ReportGenerationError(msg, status, original)


class LLMClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._base_url = base_url or llm_base_url()
        try:
            self.api_key = api_key or llm_api_key()
        except ValueError as e:
            raise ReportCredentialsError(str(e), original=e) from e
        self.model = model or llm_model()
        self.max_tokens = max_tokens or llm_max_tokens()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _chat_request(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        last_err: Exception | None = None
        last_body: str | None = None
        status: int | None = None
        for attempt in range(MAX_RETRIES):
            try:
                r = requests.post(
                    self._base_url,
                    headers=self._headers(),
                    json=payload,
                    timeout=60,
                )
                r.raise_for_status()
                return r.json()
            except requests.RequestException as e:
                last_err = e
                status = None
                last_body = None
                if getattr(e, "response", None) is not None:
                    status = getattr(e.response, "status_code", None)
                    try:
                        last_body = e.response.text
                    except Exception:
                        last_body = None

                logger.warning("LLM API attempt %d failed: %s", attempt + 1, e)
                if status in _NO_RETRY_STATUSES:
                    break
                if attempt < MAX_RETRIES - 1:
                    time.sleep(2 ** attempt)
        raise classify_failure(status, last_body, last_err) from last_err

    def generate(self, prompt: str, system: str | None = None) -> str:
        """Send a single prompt and return the assistant's text."""
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        out = self._chat_request(messages)
        choices = out.get("choices") or []
        text = ""
        if choices:
            text = ((choices[0].get("message") or {}).get("content") or "").strip()
        if not text:
            raise ReportGenerationError("The text-generation service returned an empty response.")
        usage = out.get("usage") or {}
        logger.info("Report generated with %s (%s tokens)", self.model, usage.get("total_tokens", "?"))
        return text
