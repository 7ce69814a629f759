import asyncio
from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ClientRequestError, ExtractionError
from shared.helper.HelperConfig import HelperConfig


class ExtractClientInterface(ClientInterface):
    """Downloads a source document by absolute URL and turns it into plain text."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "extract"

    ##########################################
    ################ PARSER ##################
    ##########################################

    @abstractmethod
    def extract_text(self, payload: bytes) -> str:
        """
        Converts the downloaded bytes into plain text. Runs in a worker thread.

        Raises:
            ExtractionError: If the payload cannot be read.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_extract(self, source_locator: str) -> str:
        """Download the source and return its full text.

        Args:
            source_locator (str): Absolute URL of the source document.

        Returns:
            str: The extracted text, never empty.

        Raises:
            ExtractionError: If the source is unreachable, returns a non-2xx status,
                cannot be parsed, or yields no text.
        """
        if not source_locator:
            raise ExtractionError("Download URL is required.")
        try:
            response = await self.do_request(method="GET", url=source_locator, raise_on_error=True)
        except ClientRequestError as exc:
            raise ExtractionError(f"Failed to download {source_locator}: {exc}") from exc

        if not response.content:
            raise ExtractionError(f"Empty response body from {source_locator}.")

        text = await asyncio.to_thread(self.extract_text, response.content)
        if not text or not text.strip():
            raise ExtractionError(f"No content extracted from {source_locator}.")
        return text
