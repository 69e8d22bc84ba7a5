"""OpenRouter completion client.

Speaks the OpenAI-compatible /v1/chat/completions format, so any endpoint
that does (OpenAI, Groq, Together, vLLM, LM Studio) works with base_url set
accordingly. No SDK dependency; uses urllib.
"""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request

from symposium.config import CompletionConfig
from symposium.core.utils import parse_json_object
from symposium.llm.interface import CompletionClient, CompletionError, CompletionResult, ProjectPlan, TokenUsage
from symposium.llm.prompts import build_chat_messages, build_project_plan_messages

logger = logging.getLogger(__name__)


class OpenRouterClient(CompletionClient):
    """Completion client for OpenRouter and other OpenAI-compatible endpoints.

    One request per call, no retries: a failed turn is reported to the user
    rather than silently re-billed.
    """

    def __init__(self, config: CompletionConfig):
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        logger.info("Completion client ready: %s (timeout %.0fs)", self.base_url, config.timeout)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def complete(
        self,
        credential: str,
        model_id: str,
        system_prompt: str,
        user_message: str,
    ) -> CompletionResult:
        cfg = self.config
        payload = {
            "model": model_id,
            "messages": build_chat_messages(system_prompt, user_message),
            "max_tokens": cfg.max_tokens,
            "temperature": cfg.temperature,
            "top_p": cfg.top_p,
            "frequency_penalty": cfg.frequency_penalty,
            "presence_penalty": cfg.presence_penalty,
        }
        logger.info(
            "Completion request: model=%s system_prompt=%d chars", model_id, len(system_prompt),
        )
        result = self._post_chat(credential, payload)
        return CompletionResult(
            content=self._extract_content(result),
            model=model_id,
            usage=self._extract_usage(result),
        )

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_structure(self, credential: str, model_id: str, description: str) -> ProjectPlan:
        cfg = self.config
        payload = {
            "model": model_id,
            "messages": build_project_plan_messages(description),
            "max_tokens": cfg.plan_max_tokens,
            "temperature": cfg.plan_temperature,
            "top_p": cfg.top_p,
        }
        result = self._post_chat(credential, payload)
        content = self._extract_content(result)

        data = parse_json_object(content)
        if data is None:
            logger.warning("Project plan response was not a JSON object: %s", content[:200])
            raise CompletionError("invalid structure")
        return ProjectPlan.from_dict(data)

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def list_models(self, credential: str) -> list[dict]:
        data = self._request("GET", "/v1/models", credential)
        return [
            {
                "id": m.get("id"),
                "name": m.get("name") or m.get("id"),
                "description": m.get("description"),
                "pricing": m.get("pricing"),
                "context_length": m.get("context_length"),
            }
            for m in data.get("data") or []
            if isinstance(m, dict)
        ]

    def get_credits(self, credential: str) -> dict:
        data = self._request("GET", "/v1/auth/key", credential).get("data")
        if not isinstance(data, dict):
            data = {}
        return {"credits": data.get("credit_left"), "usage": data.get("usage")}

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _post_chat(self, credential: str, payload: dict) -> dict:
        return self._request("POST", "/v1/chat/completions", credential, payload)

    def _request(self, method: str, path: str, credential: str, payload: dict | None = None) -> dict:
        """Issue one HTTP request and return the decoded JSON body.

        Every failure mode is raised as CompletionError.
        """
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
            "HTTP-Referer": self.config.app_url,
            "X-Title": self.config.app_title,
        }
        data = json.dumps(payload).encode() if payload is not None else None
        req = urllib.request.Request(
            f"{self.base_url}{path}", data=data, headers=headers, method=method,
        )

        t0 = time.monotonic()
        try:
            with urllib.request.urlopen(req, timeout=self.config.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            vendor_message = _vendor_error_message(e)
            logger.warning("Completion service returned HTTP %d: %s", e.code, vendor_message)
            raise CompletionError(
                f"OpenRouter API error: {e.code} - {vendor_message or 'Unknown error'}",
                status_code=e.code,
            ) from e
        except TimeoutError as e:
            raise CompletionError(
                f"request timed out after {self.config.timeout:.0f}s",
            ) from e
        except (urllib.error.URLError, ConnectionError, OSError) as e:
            reason = getattr(e, "reason", e)
            if isinstance(reason, TimeoutError):
                raise CompletionError(
                    f"request timed out after {self.config.timeout:.0f}s",
                ) from e
            raise CompletionError(f"completion service unreachable: {reason}") from e

        latency_ms = (time.monotonic() - t0) * 1000
        logger.debug("%s %s completed in %.0fms", method, path, latency_ms)

        try:
            result = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CompletionError(f"invalid response: {raw[:200]!r}") from e
        if not isinstance(result, dict):
            raise CompletionError("invalid response: expected a JSON object")
        return result

    @staticmethod
    def _extract_content(result: dict) -> str:
        choices = result.get("choices")
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise CompletionError("empty response")
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise CompletionError("empty response")
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise CompletionError("empty response")
        return content.strip()

    @staticmethod
    def _extract_usage(result: dict) -> TokenUsage | None:
        usage = result.get("usage")
        if not usage or not isinstance(usage, dict):
            return None
        return TokenUsage(
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
            total_tokens=usage.get("total_tokens") or 0,
        )


def _vendor_error_message(err: urllib.error.HTTPError) -> str | None:
    """Pull error.message out of a vendor error body, if there is one."""
    try:
        body = json.loads(err.read() or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError, OSError, AttributeError):
        return None
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return error
    return None
