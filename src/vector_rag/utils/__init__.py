from .helpers import get_llm, normalize_text
from .log import configure_logging, get_logger

__all__ = [
    "get_llm",
    "normalize_text",
    "configure_logging",
    "get_logger",
]
