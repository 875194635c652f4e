"""
Document loading.

Turns a list of source identifiers into cleaned RawDocuments:

    "https://example.com/page"  → fetched with WebBaseLoader (HTML → text)
    "docs/notes.txt"            → read with TextLoader

Fetching itself is delegated to a fetch callable that returns LangChain
Documents. The default one wraps the langchain-community loaders above.
Tests and custom sources pass their own:

    loader = DocumentLoader(fetch=lambda source: [Document(page_content="...")])

Failure policy for a batch: skip and log. A source that cannot be fetched
(network error, 404, missing file, no text) is recorded in
LoadResult.failures and the remaining sources are still loaded. Use
load_one() to get the FetchError raised instead.
"""

from typing import Callable, Optional, Sequence

from langchain_core.documents import Document

from vector_rag.base.indexer import BaseLoader
from vector_rag.config import LoaderConfig
from vector_rag.exceptions import FetchError
from vector_rag.models.document import RawDocument
from vector_rag.models.result import LoadFailure, LoadResult
from vector_rag.utils.helpers import normalize_text
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)

Fetcher = Callable[[str], list[Document]]


def is_web_source(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def make_langchain_fetcher(config: LoaderConfig) -> Fetcher:
    """
    Build the default fetch callable from the langchain-community loaders.

    Web pages are requested with a finite timeout and a non-2xx status
    counts as a failure. Loaders are imported lazily so that importing
    this module does not pull in bs4.
    """

    def fetch(source: str) -> list[Document]:
        if is_web_source(source):
            from langchain_community.document_loaders import WebBaseLoader

            kwargs = {
                "web_path": source,
                "requests_kwargs": {"timeout": config.request_timeout},
                "raise_for_status": True,
            }
            if config.user_agent:
                kwargs["header_template"] = {"User-Agent": config.user_agent}
            return WebBaseLoader(**kwargs).load()

        from langchain_community.document_loaders import TextLoader

        return TextLoader(source, encoding=config.encoding).load()

    return fetch


class DocumentLoader(BaseLoader):
    """
    Loads web pages and local files into RawDocuments.

    Multi-page sources (a loader may return several Documents) are
    joined into one RawDocument. The title comes from the first page's
    metadata when the loader provides one.
    """

    def __init__(self, config: LoaderConfig = None, fetch: Optional[Fetcher] = None):
        self.config = config or LoaderConfig()
        self._fetch = fetch or make_langchain_fetcher(self.config)

    def load_one(self, source: str) -> RawDocument:
        """
        Fetch and clean a single source.

        Raises:
            FetchError: The source could not be fetched or had no text.
        """
        try:
            pages = self._fetch(source)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(source, str(e) or type(e).__name__) from e

        text = normalize_text("\n".join(page.page_content for page in pages))
        if not text:
            raise FetchError(source, "no text content")

        title = None
        if pages:
            title = (pages[0].metadata.get("title") or "").strip() or None

        return RawDocument(source=source, text=text, title=title)

    def load(self, sources: Sequence[str]) -> LoadResult:
        result = LoadResult()

        for source in sources:
            try:
                result.documents.append(self.load_one(source))
            except FetchError as e:
                logger.warning("source_fetch_failed", source=source, error=e.message)
                result.failures.append(LoadFailure(source=source, error=e.message))

        logger.info(
            "documents_loaded",
            requested=len(sources),
            loaded=len(result.documents),
            failed=len(result.failures),
        )
        return result
