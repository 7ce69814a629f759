"""
Shared test fixtures and fakes.

Fakes stand in for the external collaborators (embedding provider, PDF
extraction, chat model, snapshot storage) so the retrieval engine can be
exercised without any network or disk access.
"""

import asyncio
import logging
from typing import Any

import pytest

from shared.errors import EmbeddingError, ExtractionError, PersistenceError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, ChunkMetadata, Document
from shared.storage.SnapshotStorageInterface import SnapshotStorageInterface


class FakeEmbedClient:
    """Embedding provider returning scripted vectors.

    Texts found in `vectors` get their mapped vector, everything else gets
    `default`. Calls whose 1-based number is in `fail_calls` raise EmbeddingError.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None, fail_calls: set[int] | None = None):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.fail_calls = fail_calls or set()
        self.calls: list[list[str]] = []

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        texts = [texts] if isinstance(texts, str) else texts
        self.calls.append(list(texts))
        if len(self.calls) in self.fail_calls:
            raise EmbeddingError(f"scripted failure on call {len(self.calls)}")
        return [list(self.vectors.get(text, self.default)) for text in texts]


class FakeExtractClient:
    """Text extractor serving fixed texts by URL. Unknown URLs fail.

    When `gate` is set, every extraction waits for it first.
    """

    def __init__(self, texts: dict[str, str] | None = None, gate: asyncio.Event | None = None):
        self.texts = texts or {}
        self.gate = gate
        self.calls: list[str] = []

    async def do_extract(self, source_locator: str) -> str:
        self.calls.append(source_locator)
        if self.gate is not None:
            await self.gate.wait()
        if source_locator not in self.texts:
            raise ExtractionError(f"Failed to download {source_locator}")
        return self.texts[source_locator]


class FakeLLMClient:
    def __init__(self, reply: str = "The answer.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[list[dict]] = []

    async def do_chat(self, messages: list[dict]) -> str:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """Snapshot storage backed by a dict. `fail_puts` simulates an exhausted quota."""

    def __init__(self, helper_config: HelperConfig, fail_puts: bool = False, fail_gets: bool = False):
        super().__init__(helper_config=helper_config)
        self.data: dict[str, list[Any]] = {}
        self.fail_puts = fail_puts
        self.fail_gets = fail_gets

    async def do_get(self, key: str) -> list[Any] | None:
        if self.fail_gets:
            raise PersistenceError("read failed")
        return self.data.get(key)

    async def do_put(self, key: str, value: list[Any]) -> None:
        if self.fail_puts:
            raise PersistenceError("quota exceeded")
        self.data[key] = value

    async def do_delete(self, key: str) -> None:
        self.data.pop(key, None)


def make_document(doc_id: int, title: str = "", circular_number: str = "", download_link: str | None = None, content: str | None = None) -> Document:
    return Document(
        id=doc_id,
        title=title or f"Document {doc_id}",
        circular_number=circular_number,
        issuance_type="Circular",
        date_issued="2024-01-01",
        download_link=download_link if download_link is not None else f"https://example.org/{doc_id}.pdf",
        content=content,
    )


def make_chunk(doc: Document, text: str, embedding: list[float] | None = None) -> Chunk:
    return Chunk(
        text=text,
        embedding=embedding,
        metadata=ChunkMetadata(
            document_id=doc.id,
            circular_number=doc.circular_number,
            title=doc.title,
            source=doc.download_link or "",
        ),
    )


def make_processed(doc: Document, chunks: list[tuple[str, list[float] | None]]) -> Document:
    """Processed copy of doc whose content is the joined chunk texts."""
    return doc.model_copy(
        update={
            "content": " ".join(text for text, _ in chunks),
            "chunks": [make_chunk(doc, text, embedding) for text, embedding in chunks],
        }
    )


@pytest.fixture
def env(monkeypatch):
    """Minimal environment: no inter-batch pause, no .env lookup side effects."""
    monkeypatch.setenv("EMBED_BATCH_DELAY_MS", "0")
    monkeypatch.setenv("APP_API_KEY", "secret")
    return monkeypatch


@pytest.fixture
def helper_config(env) -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("circular_rag.tests"))


@pytest.fixture
def storage(helper_config) -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage(helper_config=helper_config)
