"""
Crypto Pulse — Generative Analysis Client
──────────────────────────────────────────
Thin wrapper over Anthropic Messages that asks for strict JSON
and hands back the decoded object.

Failures (no key, transport error, timeout, unparseable reply)
raise LLMError. Callers own the fallback — this module never
invents a prediction.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from anthropic import Anthropic

from pulse_engine import config

log = logging.getLogger("cp.clients.llm")


class LLMError(Exception):
    pass


def extract_json(text: str) -> Dict[str, Any]:
    """Pull the first {...} object out of a model reply."""
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise LLMError(f"No JSON object in reply: {text[:80]!r}")
    try:
        obj = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise LLMError(f"Malformed JSON in reply: {e}") from e
    if not isinstance(obj, dict):
        raise LLMError("Reply JSON is not an object")
    return obj


class LLMClient:

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 timeout: Optional[float] = None, client: Optional[Anthropic] = None):
        api_key      = config.ANTHROPIC_API_KEY if api_key is None else api_key
        self.model   = model or config.LLM_MODEL
        self.timeout = timeout or config.LLM_TIMEOUT
        self._client = client or (Anthropic(api_key=api_key) if api_key else None)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def complete(self, system: str, user: str, max_tokens: int = 400) -> str:
        if not self._client:
            raise LLMError("AI analysis disabled — set ANTHROPIC_API_KEY")

        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(None, lambda: self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            system=system,
            messages=[{"role": "user", "content": user}],
        ))
        try:
            response = await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise LLMError(f"Model call timed out after {self.timeout}s") from e
        except Exception as e:
            raise LLMError(f"Model call failed: {e}") from e

        parts = [getattr(block, "text", "") for block in response.content or []]
        return "".join(parts).strip()

    async def complete_json(self, system: str, user: str, max_tokens: int = 400) -> Dict[str, Any]:
        text = await self.complete(system, user, max_tokens)
        return extract_json(text)
