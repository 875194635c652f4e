"""
Shared utility functions.

Helpers used across the package — LLM factory, text cleaning.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from vector_rag.config import LLMConfig, LLMProvider


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Same pattern as the embedding factory — lazy imports so you only
    need the package for the provider you actually use. Retries are
    disabled: a failed call surfaces immediately.

    Args:
        config: LLMConfig with provider, model_name, temperature, max_tokens.

    Returns:
        A LangChain BaseChatModel instance.
    """
    if config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
            max_retries=0,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic models require langchain-anthropic. "
                "Install with: pip install vector-rag[anthropic]"
            )

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
            max_retries=0,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


def normalize_text(text: str) -> str:
    """
    Clean loaded text before chunking.

    Tabs become spaces, trailing whitespace is stripped, and blank or
    whitespace-only lines are dropped. Web pages scraped to text are
    mostly blank lines otherwise.
    """
    lines = (line.replace("\t", " ").rstrip() for line in text.splitlines())
    return "\n".join(line for line in lines if line.strip())
