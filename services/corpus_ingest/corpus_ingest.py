"""Corpus ingest entry point.

Fetches the regulator's catalog, extracts and chunks every unprocessed
circular, embeds the chunks and writes the corpus snapshot.

Usage:
    python -m services.corpus_ingest.corpus_ingest
"""

import asyncio

from shared.clients.catalog.CatalogClientManager import CatalogClientManager
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.extract.pdf.ExtractClientPdf import ExtractClientPdf
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.progress import ProcessingProgress
from shared.storage.SnapshotStorageFile import SnapshotStorageFile
from services.rag.DocumentProcessor import DocumentProcessor
from services.rag.DocumentStore import DocumentStore
from services.rag.RetrievalService import RetrievalService


async def main() -> None:
    """Run the full ingest pipeline."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    embed_client = EmbedClientManager(helper_config=config).get_client()
    catalog_client = CatalogClientManager(helper_config=config).get_client()
    extract_client = ExtractClientPdf(helper_config=config)

    try:
        # without embeddings there is nothing to ingest, abort early
        try:
            await embed_client.boot()
            result = await embed_client.do_healthcheck()
        except Exception as e:
            logger.error("Error booting Embed client %s: %s. Aborting.", embed_client.get_engine_name(), e)
            return
        if not result.is_success:
            logger.error(
                "Embed client %s is not reachable (status %d). Aborting.", embed_client.get_engine_name(), result.status_code
            )
            return

        try:
            await catalog_client.boot()
            documents = await catalog_client.do_fetch_catalog()
        except Exception as e:
            logger.error("Error fetching catalog from %s: %s. Aborting.", catalog_client.get_engine_name(), e)
            return

        await extract_client.boot()

        store = DocumentStore(helper_config=config, storage=SnapshotStorageFile(helper_config=config))
        await store.do_restore()
        store.merge_catalog(documents)

        retrieval_service = RetrievalService(
            helper_config=config,
            store=store,
            embed_client=embed_client,
            processor=DocumentProcessor(helper_config=config, extract_client=extract_client),
        )

        def report(progress: ProcessingProgress) -> None:
            logger.info("Ingest progress: %d/%d documents.", progress.processed, progress.total, color="blue")

        await retrieval_service.do_process_documents(on_progress=report)
        logger.info(
            "Ingest complete: %d of %d documents processed, %d chunks held.",
            store.get_processed_count(), len(store.get_documents()), len(store.get_chunks()),
            color="green",
        )
    finally:
        await embed_client.close()
        await catalog_client.close()
        await extract_client.close()


if __name__ == "__main__":
    asyncio.run(main())
