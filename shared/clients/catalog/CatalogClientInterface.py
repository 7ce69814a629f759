from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document


class CatalogClientInterface(ClientInterface):
    """Reads the regulator's issuance catalog and maps it to unprocessed Documents."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "catalog"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_catalog(self) -> str:
        """
        Returns the endpoint path listing all issuances (e.g. "/api/issuances").
        """
        pass

    ##########################################
    ################ PARSER ##################
    ##########################################

    @abstractmethod
    def parse_catalog_response(self, response_data: dict) -> list[Document]:
        """
        Converts the raw catalog response into Documents with content and chunks absent.

        Raises:
            ValueError: If the response format is invalid.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_catalog(self) -> list[Document]:
        """Fetch and parse the complete catalog.

        Returns:
            list[Document]: All issuances in catalog order.

        Raises:
            ClientRequestError: If the request fails or returns a non-2xx status.
            ValueError: If the response cannot be parsed.
        """
        response = await self.do_request(method="GET", endpoint=self._get_endpoint_catalog(), raise_on_error=True)
        documents = self.parse_catalog_response(response.json())
        self.logging.info("Fetched %d documents from catalog '%s'.", len(documents), self.get_engine_name())
        return documents
