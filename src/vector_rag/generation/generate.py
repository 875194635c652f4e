"""
Prompt assembly and the text-generation callable.

The prompt is a fixed template with exactly two placeholders:

    {context}   — the retrieved chunk texts, closest first, blank-line separated
    {question}  — the question, verbatim

The template tells the model to reply with FALLBACK_ANSWER when the
context does not contain the answer. That includes the empty-context
case, but only as far as the model follows instructions. QueryEngine
can short-circuit empty retrievals when a guaranteed answer is needed.

The generator contract is deliberately small: `(prompt: str) -> str`,
one call per question, no conversation memory. LLMGenerator implements
it over any LangChain chat model.

Usage:
    from vector_rag.generation.generate import LLMGenerator, ANSWER_PROMPT

    generate = LLMGenerator(LLMConfig(temperature=0.0))
    answer = generate(ANSWER_PROMPT.format(context=context, question=question))
"""

from typing import Callable, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.prompts import PromptTemplate

from vector_rag.config import LLMConfig
from vector_rag.exceptions import GenerationServiceError
from vector_rag.models.result import RetrievalResult
from vector_rag.utils.helpers import get_llm
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)

Generator = Callable[[str], str]

FALLBACK_ANSWER = "The information is not available in the provided context."

ANSWER_PROMPT = PromptTemplate(
    input_variables=["context", "question"],
    template=(
        "You are an assistant for question-answering tasks. "
        "Use only the following pieces of retrieved context to answer the question.\n"
        f"If the answer is not in the context, reply exactly: \"{FALLBACK_ANSWER}\"\n"
        "Keep the answer concise.\n\n"
        "Context:\n{context}\n\n"
        "Question: {question}\n\n"
        "Answer:"
    ),
)


def build_context(
    results: Sequence[RetrievalResult],
    max_chars: Optional[int] = None,
) -> tuple[str, list[RetrievalResult]]:
    """
    Concatenate retrieved chunk texts into the prompt context.

    Chunks are taken in the given (distance) order. With max_chars set,
    whole chunks are added until the next one would exceed the budget;
    a chunk is never cut in half.

    Returns:
        (context, used) where used are the results that made it into context.
    """
    separator = "\n\n"
    parts: list[str] = []
    used: list[RetrievalResult] = []
    length = 0

    for result in results:
        added = len(result.content) + (len(separator) if parts else 0)
        if max_chars is not None and length + added > max_chars:
            break
        parts.append(result.content)
        used.append(result)
        length += added

    return separator.join(parts), used


def message_text(content) -> str:
    """
    Text of a chat message's content.

    Content is either a string or a list of content blocks (plain strings
    or dicts with a "type"). Text blocks are joined in order; tool calls,
    images and other non-text blocks are dropped.
    """
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LLMGenerator:
    """
    Single-turn text generation over a LangChain chat model.

    Each call sends exactly one prompt and keeps nothing between calls.
    Provider failures (including timeouts) become GenerationServiceError.
    """

    def __init__(self, llm_config: LLMConfig = None, llm: BaseChatModel = None):
        config = llm_config or LLMConfig()
        self._llm = llm if llm is not None else get_llm(config)
        self.model_name = f"{config.provider.value}/{config.model_name}"

    def __call__(self, prompt: str) -> str:
        try:
            response = self._llm.invoke(prompt)
        except Exception as e:
            logger.error("generation_failed", model=self.model_name, error=str(e))
            raise GenerationServiceError(f"Generation call to {self.model_name} failed: {e}") from e

        # Chat models return AIMessage objects; take the text
        if not hasattr(response, "content"):
            return str(response)
        return message_text(response.content)
