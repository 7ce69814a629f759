"""Pydantic models for the regulatory corpus.

Hierarchy:
  Document      : one issuance from the regulator's catalog, optionally processed.
  Chunk         : a bounded span of a document's text, the unit of embedding and retrieval.
  ChunkMetadata : document fields mirrored on every chunk for join-free scoring.
"""

from pydantic import BaseModel, model_validator


class ChunkMetadata(BaseModel):
    """Owning-document fields duplicated onto a chunk.

    document_id always equals the id of the Document that owns the chunk.
    """

    document_id: int
    circular_number: str
    title: str
    source: str


class Chunk(BaseModel):
    """A span of document text. The embedding is attached in place once computed."""

    text: str
    embedding: list[float] | None = None
    metadata: ChunkMetadata

    def has_embedding(self) -> bool:
        return bool(self.embedding)


class Document(BaseModel):
    """A regulatory issuance as delivered by the catalog.

    A document is either unprocessed (content is None) or fully processed
    (content and chunks attached together).

    Attributes:
        id:               Stable catalog identifier.
        title:            Human-readable title.
        circular_number:  Classification code assigned by the regulator.
        issuance_type:    Category tag (e.g. "Circular", "Memorandum").
        date_issued:      Issuance date as delivered by the catalog.
        download_link:    URL of the source PDF, if any.
        content:          Extracted full text, once processed.
        chunks:           Ordered chunks derived from content, once processed.
    """

    id: int
    title: str
    circular_number: str = ""
    issuance_type: str | None = None
    date_issued: str | None = None
    download_link: str | None = None
    content: str | None = None
    chunks: list[Chunk] | None = None

    @model_validator(mode="after")
    def _check_chunk_ownership(self) -> "Document":
        for chunk in self.chunks or []:
            if chunk.metadata.document_id != self.id:
                raise ValueError(
                    f"Chunk owned by document {self.id} carries document_id {chunk.metadata.document_id}."
                )
        return self

    @property
    def is_processed(self) -> bool:
        return bool(self.content)

    def to_snapshot(self) -> dict:
        """Serialisable form for the durable snapshot, chunks stripped."""
        return self.model_dump(exclude={"chunks"})
