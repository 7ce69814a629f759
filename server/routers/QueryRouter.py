from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import SearchRequest
from server.models.responses import SearchResponse
from shared.errors import MalformedInputError, TransientProviderError
from shared.models.search import RagResponse

router = APIRouter(prefix="/query", tags=["query"])


@router.post("")
async def query_documents(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> SearchResponse:
    """Run a hybrid (lexical + semantic) search over the held corpus.

    Args:
        request (Request): FastAPI request (provides app.state.retrieval_service).
        body (SearchRequest): JSON body with query string and limit.
        _ (None): Auth dependency result (unused).

    Returns:
        SearchResponse: Ranked results, best first.
    """
    retrieval_service = request.app.state.retrieval_service
    try:
        results = await retrieval_service.do_search(body.query, body.limit)
    except MalformedInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return SearchResponse(query=body.query, results=results, total=len(results))


@router.post("/answer")
async def answer_query(
    request: Request,
    body: SearchRequest,
    _: None = Depends(verify_api_key),
) -> RagResponse:
    """Search the corpus and generate an answer grounded in the results.

    Raises:
        HTTPException: 400 for a malformed query, 502 if the chat backend fails.
    """
    retrieval_service = request.app.state.retrieval_service
    answer_service = request.app.state.answer_service
    try:
        results = await retrieval_service.do_search(body.query, body.limit)
        return await answer_service.do_answer(body.query, results)
    except MalformedInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except TransientProviderError as exc:
        request.app.state.logging.error("Answer generation failed for query '%s': %s", body.query, exc)
        raise HTTPException(status_code=502, detail="Answer generation failed")
