from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.responses import (
    DocumentItem,
    DocumentListResponse,
    FetchResponse,
    ProcessResponse,
    ProgressResponse,
    ReembedResponse,
)
from services.rag.RetrievalService import RetrievalService
from shared.errors import TransientProviderError, WorkflowBusyError

router = APIRouter(prefix="/corpus", tags=["corpus"])


async def run_processing(retrieval_service: RetrievalService, logging) -> None:
    try:
        await retrieval_service.do_process_documents()
    except WorkflowBusyError:
        logging.warning("Embedding generation was started twice, second run ignored.")


@router.post("/fetch")
async def fetch_catalog(
    request: Request,
    _: None = Depends(verify_api_key),
) -> FetchResponse:
    """Fetch the regulator's catalog and merge it into the document store.

    Raises:
        HTTPException: 409 if embedding generation is running.
        HTTPException: 502 if the catalog cannot be fetched.
    """
    if request.app.state.retrieval_service.is_processing():
        raise HTTPException(status_code=409, detail="Embedding generation is running")

    catalog_client = request.app.state.catalog_client
    store = request.app.state.document_store
    try:
        documents = await catalog_client.do_fetch_catalog()
    except (TransientProviderError, ValueError) as exc:
        request.app.state.logging.error("Catalog fetch failed: %s", exc)
        raise HTTPException(status_code=502, detail="Catalog fetch failed")

    store.merge_catalog(documents)
    await store.do_snapshot()
    return FetchResponse(documents=len(store.get_documents()))


@router.post("/process", status_code=202)
async def process_documents(
    request: Request,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> ProcessResponse:
    """Start embedding generation for all unprocessed documents in the background.

    Raises:
        HTTPException: 409 if a run is already in progress.
    """
    retrieval_service = request.app.state.retrieval_service
    if retrieval_service.is_processing():
        raise HTTPException(status_code=409, detail="Embedding generation is already running")

    pending = len(request.app.state.document_store.get_unprocessed_documents())
    background_tasks.add_task(run_processing, retrieval_service, request.app.state.logging)
    return ProcessResponse(status="accepted", pending=pending)


@router.post("/reembed")
async def reembed_chunks(
    request: Request,
    _: None = Depends(verify_api_key),
) -> ReembedResponse:
    """Recompute missing chunk embeddings, e.g. after a restart restored the snapshot.

    Raises:
        HTTPException: 409 if embedding generation is running.
    """
    retrieval_service = request.app.state.retrieval_service
    try:
        count = await retrieval_service.do_reembed_chunks()
    except WorkflowBusyError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return ReembedResponse(reembedded=count)


@router.get("/progress")
async def get_progress(
    request: Request,
    _: None = Depends(verify_api_key),
) -> ProgressResponse:
    retrieval_service = request.app.state.retrieval_service
    progress = retrieval_service.get_progress()
    return ProgressResponse(
        total=progress.total,
        processed=progress.processed,
        is_processing=retrieval_service.is_processing(),
        processed_documents=request.app.state.document_store.get_processed_count(),
    )


@router.get("/documents")
async def list_documents(
    request: Request,
    _: None = Depends(verify_api_key),
) -> DocumentListResponse:
    documents = [
        DocumentItem(**doc.model_dump(exclude={"content", "chunks"}), is_processed=doc.is_processed)
        for doc in request.app.state.document_store.get_documents()
    ]
    return DocumentListResponse(documents=documents, total=len(documents))


@router.delete("")
async def clear_corpus(
    request: Request,
    _: None = Depends(verify_api_key),
) -> dict:
    """Drop all documents and chunks from memory and the snapshot.

    Raises:
        HTTPException: 409 if embedding generation is running.
    """
    if request.app.state.retrieval_service.is_processing():
        raise HTTPException(status_code=409, detail="Embedding generation is running")
    await request.app.state.document_store.do_clear()
    return {"status": "cleared"}
