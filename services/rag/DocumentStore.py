"""Document store.

Holds the authoritative in-memory corpus (documents and embedded chunks) and
mediates every read and write. The durable snapshot is a bounded projection of
that state: documents without chunk payloads and the most recent chunks without
embeddings. Snapshot failures never touch the in-memory state.
"""

from pydantic import ValidationError

from shared.errors import MalformedInputError, PersistenceError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, Document
from shared.storage.SnapshotStorageInterface import SnapshotStorageInterface

DOCUMENTS_KEY = "documents"
CHUNKS_KEY = "chunks"
DEFAULT_MAX_SNAPSHOT_CHUNKS = 1000


class DocumentStore:
    """Process-wide owner of documents, chunks and their durable snapshot."""

    def __init__(
        self,
        helper_config: HelperConfig,
        storage: SnapshotStorageInterface,
        max_snapshot_chunks: int | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._storage = storage
        if max_snapshot_chunks is None:
            max_snapshot_chunks = int(helper_config.get_number_val("SNAPSHOT_MAX_CHUNKS", default=DEFAULT_MAX_SNAPSHOT_CHUNKS, minimum=1))
        self._max_snapshot_chunks = max_snapshot_chunks

        # insertion-ordered by document id
        self._documents: dict[int, Document] = {}
        self._chunks: list[Chunk] = []

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_documents(self) -> list[Document]:
        return list(self._documents.values())

    def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    def get_chunks(self) -> list[Chunk]:
        return list(self._chunks)

    def get_unprocessed_documents(self) -> list[Document]:
        """Documents without extracted text that have a source to extract from."""
        return [doc for doc in self._documents.values() if not doc.is_processed and doc.download_link]

    def get_processed_count(self) -> int:
        return sum(1 for doc in self._documents.values() if doc.is_processed)

    def get_unembedded_chunks(self) -> list[Chunk]:
        """Chunks still lacking an embedding: held ones (restored from a snapshot)
        and those of processed documents whose embedding sub-batch failed."""
        held_ids = {id(chunk) for chunk in self._chunks}
        missing = [chunk for chunk in self._chunks if not chunk.has_embedding()]
        for doc in self._documents.values():
            missing.extend(
                chunk for chunk in doc.chunks or [] if not chunk.has_embedding() and id(chunk) not in held_ids
            )
        return missing

    ##########################################
    ################ WRITES ##################
    ##########################################

    def merge_catalog(self, documents: list[Document]) -> None:
        """Replace the held document set with a fresh catalog listing.

        A document already processed in memory is kept instead of its unprocessed
        catalog entry, so re-fetching the catalog never discards extracted text.
        Documents absent from the listing are dropped; held chunks are kept.

        Args:
            documents (list[Document]): The catalog listing, in catalog order.
        """
        merged: dict[int, Document] = {}
        kept = 0
        for doc in documents:
            held = self._documents.get(doc.id)
            if held is not None and held.is_processed and not doc.is_processed:
                merged[doc.id] = held
                kept += 1
            else:
                merged[doc.id] = doc
        self._documents = merged
        self.logging.info("Catalog merged: %d documents (%d already processed).", len(merged), kept)

    def upsert_processed_batch(self, documents: list[Document]) -> None:
        """Merge a batch of processed documents into the held set by id.

        Prior entries with the same id are replaced in place; new ids are appended.
        Chunks of the batch that hold an embedding are appended to the chunk list.

        Args:
            documents (list[Document]): Processed documents (content attached).

        Raises:
            MalformedInputError: If a document has no content. Nothing is merged then.
        """
        for doc in documents:
            if not doc.is_processed:
                raise MalformedInputError(f"Document {doc.id} has no content and cannot be merged as processed.")

        new_chunks: list[Chunk] = []
        for doc in documents:
            self._documents[doc.id] = doc
            new_chunks.extend(chunk for chunk in doc.chunks or [] if chunk.has_embedding())
        self._chunks.extend(new_chunks)
        self.logging.debug("Merged %d processed documents, %d embedded chunks.", len(documents), len(new_chunks))

    def append_embedded_chunks(self, chunks: list[Chunk]) -> int:
        """Add chunks that gained an embedding after their document was stored.

        Chunks already held or still without an embedding are ignored.

        Returns:
            int: Number of chunks appended.
        """
        held_ids = {id(chunk) for chunk in self._chunks}
        new_chunks = [chunk for chunk in chunks if chunk.has_embedding() and id(chunk) not in held_ids]
        self._chunks.extend(new_chunks)
        return len(new_chunks)

    ##########################################
    ############### SNAPSHOT #################
    ##########################################

    async def do_snapshot(self) -> None:
        """Persist documents (chunks stripped) and the most recent chunks (embeddings stripped).

        Persistence errors are logged and swallowed.
        """
        documents_payload = [doc.to_snapshot() for doc in self._documents.values()]
        chunks_payload = [
            chunk.model_dump(exclude={"embedding"})
            for chunk in self._chunks[-self._max_snapshot_chunks:]
        ]
        try:
            await self._storage.do_put(DOCUMENTS_KEY, documents_payload)
            await self._storage.do_put(CHUNKS_KEY, chunks_payload)
        except PersistenceError as exc:
            self.logging.warning("Failed to save corpus snapshot (in-memory state kept): %s", exc)
            return
        self.logging.debug("Snapshot saved: %d documents, %d chunks.", len(documents_payload), len(chunks_payload))

    async def do_restore(self) -> bool:
        """Load documents and chunks from the durable snapshot.

        Restored chunks carry no embeddings; restored documents carry no chunks.

        Returns:
            bool: True if either documents or chunks were recovered.
        """
        try:
            documents_payload = await self._storage.do_get(DOCUMENTS_KEY)
            chunks_payload = await self._storage.do_get(CHUNKS_KEY)
        except PersistenceError as exc:
            self.logging.error("Failed to load corpus snapshot: %s", exc)
            return False

        try:
            documents = [Document.model_validate(item) for item in documents_payload or []]
            chunks = [Chunk.model_validate(item) for item in chunks_payload or []]
        except (ValidationError, TypeError) as exc:
            self.logging.error("Corpus snapshot is malformed, ignoring it: %s", exc)
            return False

        if documents_payload is not None:
            self._documents = {doc.id: doc for doc in documents}
            self.logging.info("Loaded %d documents from snapshot.", len(documents))
        if chunks_payload is not None:
            self._chunks = chunks
            self.logging.info("Loaded %d chunks from snapshot.", len(chunks))

        return documents_payload is not None or chunks_payload is not None

    async def do_clear(self) -> None:
        """Empty the in-memory corpus and delete the durable snapshot."""
        self._documents = {}
        self._chunks = []
        for key in (DOCUMENTS_KEY, CHUNKS_KEY):
            try:
                await self._storage.do_delete(key)
            except PersistenceError as exc:
                self.logging.warning("Failed to delete snapshot key '%s': %s", key, exc)
        self.logging.info("Corpus cleared.")
