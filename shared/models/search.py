"""Pydantic models for ranked retrieval results and generated answers."""

from pydantic import BaseModel


class SearchResult(BaseModel):
    """A single ranked hit, either a lexically matched document or a scored chunk.

    Derived per query and never persisted.
    """

    document_id: int
    circular_number: str
    title: str
    source: str
    text: str
    score: float


class RagSource(BaseModel):
    """A cited source attached to a generated answer."""

    document_id: int
    circular_number: str
    title: str
    source: str
    excerpt: str


class RagResponse(BaseModel):
    """Free-text answer plus the sources it was generated from."""

    answer: str
    sources: list[RagSource] = []
