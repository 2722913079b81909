"""LLM client — any OpenAI-compatible chat completions endpoint.

The rest of the app talks to the ``GenerationClient`` protocol, so tests
substitute a fake and production uses ``OpenAIChatClient``. There are no
retries here: a failure surfaces straight to the caller, which reports it
and lets the user try again.
"""

import json
import logging
import time
from typing import Protocol

import httpx

from peulot.core.errors import GenerationError, GenerationTimeoutError
from peulot.observability.tracing import log_metrics, start_span

logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    async def complete(self, system: str, user: str, max_tokens: int) -> str | None:
        """Return the raw text the model produced, or None when it produced nothing."""
        ...


class OpenAIChatClient:
    """Chat completions over httpx with JSON-object response format."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: float = 120.0,
    ):
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.api_key = api_key
        self.model = model
        # Fail fast on connect, generous on read (LLM generation)
        self.timeout = httpx.Timeout(connect=10.0, read=timeout_seconds, write=10.0, pool=5.0)

    async def complete(self, system: str, user: str, max_tokens: int) -> str | None:
        if not self.api_key:
            raise GenerationError("LLM API key not configured. Set LLM_API_KEY in .env.")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "response_format": {"type": "json_object"},
            "max_completion_tokens": max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        with start_span(name="llm_chat_completion", span_type="CHAT_MODEL") as span:
            span.set_inputs({"model": self.model, "max_tokens": max_tokens, "prompt_chars": len(user)})
            t0 = time.monotonic()
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.url, json=payload, headers=headers)
                    resp.raise_for_status()
                    data = resp.json()
                content = data["choices"][0]["message"].get("content")
            except httpx.TimeoutException as e:
                span.set_outputs({"error": "timeout"})
                logger.error("LLM call timed out after %.1fs (model=%s)", time.monotonic() - t0, self.model)
                raise GenerationTimeoutError("The AI service took too long to respond. Please try again.") from e
            except httpx.HTTPStatusError as e:
                span.set_outputs({"error": f"http_{e.response.status_code}"})
                logger.error("LLM error %d: %s", e.response.status_code, e.response.text[:200])
                raise GenerationError("The AI service returned an error.") from e
            except httpx.HTTPError as e:
                span.set_outputs({"error": type(e).__name__})
                logger.error("LLM transport error: %s", e)
                raise GenerationError("Could not reach the AI service.") from e
            except (KeyError, IndexError, TypeError, ValueError) as e:
                span.set_outputs({"error": f"parse_error: {e}"})
                logger.error("Unexpected LLM response structure: %s", e)
                raise GenerationError("The AI service returned an unexpected response.") from e

            duration_ms = round((time.monotonic() - t0) * 1000)
            usage = data.get("usage") or {}
            prompt_tokens = usage.get("prompt_tokens", 0)
            completion_tokens = usage.get("completion_tokens", 0)
            span.set_outputs({
                "has_content": bool(content),
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "duration_ms": duration_ms,
            })
            if prompt_tokens or completion_tokens:
                log_metrics({
                    "llm_prompt_tokens": float(prompt_tokens),
                    "llm_completion_tokens": float(completion_tokens),
                    "llm_total_tokens": float(prompt_tokens + completion_tokens),
                })
            logger.info(
                "LLM response (model=%s, %d completion tokens)", self.model, completion_tokens,
                extra={"duration_ms": duration_ms},
            )
            return content


def parse_json_content(content: str | None) -> dict:
    """Parse LLM response content into a JSON object, stripping markdown fences.

    Raises GenerationError for empty content, invalid JSON, or a non-object.
    """
    if not content or not content.strip():
        raise GenerationError("No content received from AI")
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content[:-3]
    try:
        parsed = json.loads(content.strip())
    except json.JSONDecodeError as e:
        raise GenerationError("AI response was not valid JSON") from e
    if not isinstance(parsed, dict):
        raise GenerationError("AI response was not a JSON object")
    return parsed
