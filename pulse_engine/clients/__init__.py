"""
Crypto Pulse upstream clients.

Each module wraps one upstream and never raises past its own
boundary — failures resolve to a documented neutral value.
LLMClient is the one exception: it raises LLMError and the
calling service picks the fallback.
"""

from .llm import LLMClient, LLMError

__all__ = ["LLMClient", "LLMError"]
