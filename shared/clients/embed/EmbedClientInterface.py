from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.errors import ClientRequestError, EmbeddingError
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config, shared by all engines
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=self._get_default_model())
        # 0 disables the dimensionality check
        self.embed_vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=0, minimum=0))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    @abstractmethod
    def _get_default_model(self) -> str:
        """
        Returns the model used when EMBED_MODEL is not set (e.g. "mxbai-embed-large").
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests (e.g. "/api/embed").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]}, needs sorting

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    def _validate_embeddings(self, texts: list[str], vectors: list[list[float]]) -> None:
        """
        Raises:
            EmbeddingError: If the vector count or dimensionality does not match.
        """
        if len(vectors) != len(texts):
            raise EmbeddingError(f"Embedding count mismatch: sent {len(texts)} texts, received {len(vectors)} vectors.")
        if self.embed_vector_size:
            for vector in vectors:
                if len(vector) != self.embed_vector_size:
                    raise EmbeddingError(
                        f"Model '{self.embed_model}' returned a {len(vector)}-dimensional vector, "
                        f"expected {self.embed_vector_size} (EMBED_VECTOR_SIZE)."
                    )

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send an embedding request and return the extracted vectors.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            EmbeddingError: If the request fails, the status is not 200, or the
                response does not hold one valid vector per input.
        """
        texts = [texts] if isinstance(texts, str) else texts
        if not texts:
            return []
        body = self.get_embed_payload(texts)
        try:
            response = await self.do_request(method="POST", endpoint=self.get_endpoint_embedding(), json=body)
        except ClientRequestError as exc:
            raise EmbeddingError(str(exc)) from exc
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise EmbeddingError("Embedding request failed with status %d." % response.status_code)
        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as exc:
            raise EmbeddingError(str(exc)) from exc
        self._validate_embeddings(texts, vectors)
        return vectors
