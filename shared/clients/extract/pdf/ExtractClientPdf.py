import fitz  # pymupdf

from shared.clients.extract.ExtractClientInterface import ExtractClientInterface
from shared.errors import ExtractionError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ExtractClientPdf(ExtractClientInterface):
    """PDF extraction with PyMuPDF. Page texts are joined with a newline."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Pdf"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return []

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        # sources are addressed by absolute URL
        return ""

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    ##########################################
    ################ PARSER ##################
    ##########################################

    def extract_text(self, payload: bytes) -> str:
        try:
            with fitz.open(stream=payload, filetype="pdf") as doc:
                pages = [page.get_text("text") for page in doc]
        except (RuntimeError, ValueError) as exc:
            raise ExtractionError(f"Unreadable PDF: {exc}") from exc
        return "\n".join(pages)
