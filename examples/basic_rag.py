"""
Basic RAG example — ingest a few pages, then ask questions.

This script:
    1. Fetches two web pages and chunks them
    2. Embeds the chunks into a SQLite vector table
    3. Asks questions and prints answers with their sources

Needs OPENAI_API_KEY in the environment or in .env.

Run:
    pip install -e .
    python examples/basic_rag.py
"""

from vector_rag import (
    LoggingConfig,
    RAGConfig,
    RetrieverConfig,
    SimpleRAG,
    VectorStoreConfig,
    configure_logging,
)

SOURCES = [
    "https://en.wikipedia.org/wiki/Retrieval-augmented_generation",
    "https://en.wikipedia.org/wiki/Vector_database",
]


def main():
    configure_logging(LoggingConfig(level="INFO"))

    rag = SimpleRAG(RAGConfig(
        vector_store=VectorStoreConfig(database_url="sqlite:///rag_example.db"),
        retriever=RetrieverConfig(k=4),
    ))

    report = rag.ingest(SOURCES, reset=True)
    print(f"Stored {report.records_added} chunks from {report.documents_loaded} documents")
    for failure in report.failures:
        print(f"   Skipped {failure.source}: {failure.error}")

    questions = [
        "What problem does retrieval-augmented generation solve?",
        "How does a vector database find similar items?",
    ]

    for q in questions:
        print(f"\nQ: {q}")
        response = rag.query(q)
        print(f"A: {response.answer}")
        for source in response.sources:
            print(f"   [{source.distance:.3f}] {source.title or source.source}")


if __name__ == "__main__":
    main()
