"""Text extraction and chunking for one document-batch."""

import asyncio

from shared.clients.extract.ExtractClientInterface import ExtractClientInterface
from shared.errors import TransientProviderError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.TextSplitter import TextSplitter
from shared.models.document import Chunk, ChunkMetadata, Document


class DocumentProcessor:
    """Turns unprocessed documents into processed ones (content and unembedded chunks)."""

    def __init__(
        self,
        helper_config: HelperConfig,
        extract_client: ExtractClientInterface,
        splitter: TextSplitter | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._extract_client = extract_client
        if splitter is None:
            splitter = TextSplitter(
                chunk_size=int(helper_config.get_number_val("CHUNK_SIZE", default=1000, minimum=1)),
                chunk_overlap=int(helper_config.get_number_val("CHUNK_OVERLAP", default=200, minimum=0)),
            )
        self._splitter = splitter

    def build_chunks(self, doc: Document, text: str) -> list[Chunk]:
        """Split text into chunks carrying the document's metadata."""
        metadata = ChunkMetadata(
            document_id=doc.id,
            circular_number=doc.circular_number,
            title=doc.title,
            source=doc.download_link or "",
        )
        return [Chunk(text=piece, metadata=metadata.model_copy()) for piece in self._splitter.split(text)]

    async def do_process_document(self, doc: Document, sem: asyncio.Semaphore) -> Document | None:
        """Extract and split a single document.

        Returns:
            Document | None: A processed copy of doc, or None if extraction failed.
        """
        async with sem:
            try:
                text = await self._extract_client.do_extract(doc.download_link or "")
            except TransientProviderError as exc:
                self.logging.error("Extraction failed for document id=%s ('%s'): %s", doc.id, doc.title, exc)
                return None

        chunks = self.build_chunks(doc, text)
        self.logging.debug("Document id=%s ('%s') split into %d chunks.", doc.id, doc.title, len(chunks))
        return doc.model_copy(update={"content": text, "chunks": chunks})

    async def do_process_batch(self, documents: list[Document]) -> list[Document]:
        """Extract all documents of a batch concurrently.

        Args:
            documents (list[Document]): Unprocessed documents.

        Returns:
            list[Document]: Processed documents in input order. Failed documents are omitted.
        """
        if not documents:
            return []

        sem = asyncio.Semaphore(len(documents))
        results = await asyncio.gather(*[self.do_process_document(doc, sem) for doc in documents])
        return [doc for doc in results if doc is not None]
