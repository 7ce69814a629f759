"""Retrieval orchestrator.

Runs the embedding-generation workflow over unprocessed documents and answers
hybrid (lexical + semantic) queries against the held corpus.
"""

import asyncio
from typing import Callable

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.errors import MalformedInputError, TransientProviderError, WorkflowBusyError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, Document
from shared.models.progress import ProcessingProgress
from shared.models.search import SearchResult
from services.rag.DocumentProcessor import DocumentProcessor
from services.rag.DocumentStore import DocumentStore
from services.rag.LexicalMatcher import LexicalMatcher
from services.rag.VectorIndex import VectorIndex

ProgressCallback = Callable[[ProcessingProgress], None]


class RetrievalService:
    def __init__(
        self,
        helper_config: HelperConfig,
        store: DocumentStore,
        embed_client: EmbedClientInterface,
        processor: DocumentProcessor,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store = store
        self._embed_client = embed_client
        self._processor = processor
        self._vector_index = VectorIndex(helper_config=helper_config)
        self._lexical_matcher = LexicalMatcher(
            excerpt_chars=int(helper_config.get_number_val("SEARCH_EXCERPT_CHARS", default=1000, minimum=0))
        )

        self._process_batch_size = int(helper_config.get_number_val("PROCESS_BATCH_SIZE", default=5, minimum=1))
        self._embed_batch_size = int(helper_config.get_number_val("EMBED_BATCH_SIZE", default=20, minimum=1))
        self._embed_batch_delay = helper_config.get_number_val("EMBED_BATCH_DELAY_MS", default=200, minimum=0) / 1000

        # held while a workflow runs, never waited on
        self._workflow_lock = asyncio.Lock()
        self._progress = ProcessingProgress()

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_progress(self) -> ProcessingProgress:
        return self._progress.model_copy()

    def is_processing(self) -> bool:
        return self._workflow_lock.locked()

    ##########################################
    ############### WORKFLOW #################
    ##########################################

    async def do_process_documents(self, on_progress: ProgressCallback | None = None) -> ProcessingProgress:
        """Extract, chunk, embed and store every unprocessed document.

        Documents are handled in batches; after each batch the store is updated,
        a snapshot is written and progress is reported. A document whose extraction
        fails stays unprocessed. A failing embedding sub-batch leaves its chunks
        without embeddings.

        Args:
            on_progress (ProgressCallback | None): Called with the progress after each batch.

        Returns:
            ProcessingProgress: Final progress of this run.

        Raises:
            WorkflowBusyError: If another run is in progress.
        """
        if self._workflow_lock.locked():
            raise WorkflowBusyError("Embedding generation is already running.")

        async with self._workflow_lock:
            unprocessed = self._store.get_unprocessed_documents()
            if not unprocessed:
                self.logging.info("No unprocessed documents, nothing to do.")
                return self.get_progress()

            self._progress = ProcessingProgress(total=len(unprocessed), processed=0)
            self.logging.info("Processing %d documents in batches of %d...", len(unprocessed), self._process_batch_size)

            for batch_start in range(0, len(unprocessed), self._process_batch_size):
                batch = unprocessed[batch_start: batch_start + self._process_batch_size]
                await self._process_batch(batch)

                self._progress.processed += len(batch)
                self.logging.info("Progress: %d/%d documents.", self._progress.processed, self._progress.total)
                if on_progress is not None:
                    on_progress(self.get_progress())

            self.logging.info("Embedding generation finished: %d documents processed.", self._store.get_processed_count())
            return self.get_progress()

    async def _process_batch(self, batch: list[Document]) -> None:
        processed = await self._processor.do_process_batch(batch)
        if not processed:
            self.logging.warning("No document of the current batch could be extracted.")
            return

        all_chunks = [chunk for doc in processed for chunk in doc.chunks or []]
        embedded = await self.do_generate_embeddings(all_chunks)

        # reattach by owning document
        by_document: dict[int, list[Chunk]] = {doc.id: [] for doc in processed}
        for chunk in embedded:
            by_document[chunk.metadata.document_id].append(chunk)
        processed = [doc.model_copy(update={"chunks": by_document[doc.id]}) for doc in processed]

        self._store.upsert_processed_batch(processed)
        await self._store.do_snapshot()

    async def do_generate_embeddings(self, chunks: list[Chunk]) -> list[Chunk]:
        """Embed chunks in sequential sub-batches, pausing between provider calls.

        Embeddings are attached to the chunk objects in place. The chunks of a
        failing sub-batch are returned without embeddings.

        Args:
            chunks (list[Chunk]): Chunks to embed, in order.

        Returns:
            list[Chunk]: The same chunks, in the same order.
        """
        result: list[Chunk] = []
        failed = 0
        for batch_start in range(0, len(chunks), self._embed_batch_size):
            if batch_start > 0 and self._embed_batch_delay > 0:
                await asyncio.sleep(self._embed_batch_delay)

            sub_batch = chunks[batch_start: batch_start + self._embed_batch_size]
            try:
                vectors = await self._embed_client.do_embed([chunk.text for chunk in sub_batch])
            except TransientProviderError as exc:
                failed += len(sub_batch)
                self.logging.error(
                    "Embedding failed for chunks %d-%d: %s", batch_start, batch_start + len(sub_batch) - 1, exc
                )
                result.extend(sub_batch)
                continue

            for chunk, vector in zip(sub_batch, vectors):
                chunk.embedding = vector
            result.extend(sub_batch)

        if failed:
            self.logging.warning("%d of %d chunks were left without embeddings.", failed, len(chunks))
        return result

    async def do_reembed_chunks(self) -> int:
        """Recompute embeddings for chunks that have none.

        Covers chunks restored from a snapshot and chunks of processed documents
        whose embedding sub-batch failed. The latter join the searchable chunk
        list once embedded, and a snapshot is written.

        Returns:
            int: Number of chunks that received an embedding.

        Raises:
            WorkflowBusyError: If an embedding-generation run is in progress.
        """
        if self._workflow_lock.locked():
            raise WorkflowBusyError("Embedding generation is already running.")

        async with self._workflow_lock:
            missing = self._store.get_unembedded_chunks()
            if not missing:
                self.logging.info("All held chunks carry embeddings.")
                return 0

            self.logging.info("Re-embedding %d chunks...", len(missing))
            await self.do_generate_embeddings(missing)
            restored = sum(1 for chunk in missing if chunk.has_embedding())
            appended = self._store.append_embedded_chunks(missing)
            if appended:
                await self._store.do_snapshot()
            self.logging.info("Re-embedded %d of %d chunks (%d newly searchable).", restored, len(missing), appended)
            return restored

    ##########################################
    ################ SEARCH ##################
    ##########################################

    async def do_search(self, query: str, limit: int = 5) -> list[SearchResult]:
        """Hybrid search: lexical matches on circular number and title, fused with
        cosine-ranked chunks.

        Args:
            query (str): Free-text query.
            limit (int): Maximum number of results.

        Returns:
            list[SearchResult]: Ranked results, best first. Empty if nothing matched.

        Raises:
            MalformedInputError: If the query is blank or limit is below 1.
        """
        if not query or not query.strip():
            raise MalformedInputError("Query must not be empty.")
        if limit < 1:
            raise MalformedInputError(f"Limit must be at least 1. Got: {limit}.")

        lexical_results = self._lexical_matcher.search(query, self._store.get_documents())
        semantic_results = await self._semantic_search(query, limit)

        # stable sort keeps lexical hits ahead of equally scored semantic hits
        fused = sorted(lexical_results + semantic_results, key=lambda result: result.score, reverse=True)
        self.logging.debug(
            "Query '%s': %d lexical, %d semantic results.", query, len(lexical_results), len(semantic_results)
        )
        return fused[:limit]

    async def _semantic_search(self, query: str, limit: int) -> list[SearchResult]:
        embedded_chunks = [chunk for chunk in self._store.get_chunks() if chunk.has_embedding()]
        if not embedded_chunks:
            return []

        try:
            vectors = await self._embed_client.do_embed([query])
        except TransientProviderError as exc:
            self.logging.warning("Query embedding failed, returning lexical results only: %s", exc)
            return []

        return self._vector_index.search(vectors[0], embedded_chunks, limit)
