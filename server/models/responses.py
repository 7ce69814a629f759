from pydantic import BaseModel

from shared.models.search import SearchResult


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]
    total: int


class FetchResponse(BaseModel):
    documents: int


class ProcessResponse(BaseModel):
    status: str
    pending: int


class ProgressResponse(BaseModel):
    total: int
    processed: int
    is_processing: bool
    processed_documents: int


class DocumentItem(BaseModel):
    id: int
    title: str
    circular_number: str
    issuance_type: str | None
    date_issued: str | None
    download_link: str | None
    is_processed: bool


class DocumentListResponse(BaseModel):
    documents: list[DocumentItem]
    total: int


class ReembedResponse(BaseModel):
    reembedded: int
