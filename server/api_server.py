"""FastAPI application entry point for circular-rag."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.catalog.CatalogClientInterface import CatalogClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.catalog.CatalogClientManager import CatalogClientManager
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.extract.pdf.ExtractClientPdf import ExtractClientPdf
from shared.errors import ClientRequestError
from shared.storage.SnapshotStorageFile import SnapshotStorageFile
from services.rag.DocumentProcessor import DocumentProcessor
from services.rag.DocumentStore import DocumentStore
from services.rag.RetrievalService import RetrievalService
from services.answer.AnswerService import AnswerService
from server.routers.QueryRouter import router as query_router
from server.routers.CorpusRouter import router as corpus_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()
    catalog_client = CatalogClientManager(helper_config=app.state.helper_config).get_client()
    extract_client = ExtractClientPdf(helper_config=app.state.helper_config)
    clients = [embed_client, llm_client, catalog_client, extract_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.embed_client = embed_client
    app.state.llm_client = llm_client
    app.state.catalog_client = catalog_client

    app.state.document_store = DocumentStore(
        helper_config=app.state.helper_config,
        storage=SnapshotStorageFile(helper_config=app.state.helper_config),
    )
    if await app.state.document_store.do_restore():
        logging.info("Corpus snapshot restored.", color="green")

    app.state.retrieval_service = RetrievalService(
        helper_config=app.state.helper_config,
        store=app.state.document_store,
        embed_client=embed_client,
        processor=DocumentProcessor(helper_config=app.state.helper_config, extract_client=extract_client),
    )
    app.state.answer_service = AnswerService(
        helper_config=app.state.helper_config,
        llm_client=llm_client,
    )

    await check_connections(embed_client, llm_client, catalog_client)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="circular-rag",
    description=(
        "Retrieval-augmented question answering over central-bank circulars. "
        "The catalog is fetched via POST /corpus/fetch and embedded via POST /corpus/process. "
        "Hybrid search is served via POST /query, grounded answers via POST /query/answer."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)
app.include_router(corpus_router)


async def check_connections(
    embed_client: EmbedClientInterface,
    llm_client: LLMClientInterface,
    catalog_client: CatalogClientInterface,
) -> None:
    """Check connectivity to all configured backends on startup.

    Catalog failures are non-fatal (fetch will fail later, but the server stays up).
    Embedding and chat failures are fatal, queries cannot be served without them.

    Raises:
        Exception: If the embedding or chat backend is not reachable.
    """
    try:
        result: httpx.Response = await catalog_client.do_healthcheck()
    except ClientRequestError as exc:
        logging.warning("Catalog client '%s' is not reachable: %s. Catalog fetch may fail.", catalog_client.__class__.__name__, exc)
    else:
        if not result.is_success:
            logging.warning(
                "Catalog client '%s' is not reachable (status %d). Catalog fetch may fail.",
                catalog_client.__class__.__name__,
                result.status_code,
            )

    result = await embed_client.do_healthcheck()
    if not result.is_success:
        raise Exception(
            f"Embed client '{embed_client.__class__.__name__}' is not reachable "
            f"(status {result.status_code}). Cannot serve queries."
        )

    result = await llm_client.do_healthcheck()
    if not result.is_success:
        raise Exception(
            f"LLM client is not reachable (status {result.status_code}). "
            "Answer generation will not work."
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting circular-rag API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
