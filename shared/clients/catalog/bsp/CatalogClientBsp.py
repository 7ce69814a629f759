from pydantic import ValidationError

from shared.clients.catalog.CatalogClientInterface import CatalogClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.document import Document


class CatalogClientBsp(CatalogClientInterface):
    """Catalog client for the BSP issuances feed.

    Expected response shape::

        {"issuances": [{"id": 1, "title": "...", "circularNumber": "1133",
                        "issuanceType": "Circular", "dateIssued": "2022-01-05",
                        "downloadLink": "https://..."}]}
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._path = self.get_config_val("PATH", default="", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Bsp"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="PATH", val_type="string", default=""),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return self._path

    def _get_endpoint_catalog(self) -> str:
        return self._path

    ##########################################
    ################ PARSER ##################
    ##########################################

    def parse_catalog_response(self, response_data: dict) -> list[Document]:
        issuances = response_data.get("issuances")
        if issuances is None:
            raise ValueError(f"Catalog response has no 'issuances' field. Response keys: {list(response_data.keys())}")

        documents: list[Document] = []
        for issuance in issuances:
            try:
                documents.append(
                    Document(
                        id=issuance["id"],
                        title=issuance.get("title") or "",
                        circular_number=str(issuance.get("circularNumber") or ""),
                        issuance_type=issuance.get("issuanceType"),
                        date_issued=issuance.get("dateIssued"),
                        download_link=issuance.get("downloadLink") or None,
                    )
                )
            except (KeyError, ValidationError) as exc:
                # one broken catalog entry must not hide the rest
                self.logging.warning("Skipping malformed catalog entry %r: %s", issuance, exc)
        return documents
