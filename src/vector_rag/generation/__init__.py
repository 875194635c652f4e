from .engine import QueryEngine, answer
from .generate import ANSWER_PROMPT, FALLBACK_ANSWER, LLMGenerator, build_context

__all__ = [
    "QueryEngine",
    "answer",
    "LLMGenerator",
    "ANSWER_PROMPT",
    "FALLBACK_ANSWER",
    "build_context",
]
