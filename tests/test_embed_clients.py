"""Tests for the embedding clients: engine selection, payloads and response handling."""

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.errors import EmbeddingError


@pytest.fixture
def ollama_env(env):
    env.setenv("EMBED_ENGINE", "ollama")
    env.setenv("EMBED_OLLAMA_BASE_URL", "http://ollama.local:11434")
    env.delenv("EMBED_MODEL", raising=False)
    env.delenv("EMBED_VECTOR_SIZE", raising=False)
    return env


def mock_transport(client, handler) -> None:
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestEmbedClientManager:
    def test_selects_engine(self, helper_config, ollama_env):
        client = EmbedClientManager(helper_config=helper_config).get_client()
        assert isinstance(client, EmbedClientOllama)
        assert client.embed_model == "mxbai-embed-large"

    def test_unknown_engine(self, helper_config, env):
        env.setenv("EMBED_ENGINE", "nonexistent")
        with pytest.raises(ValueError):
            EmbedClientManager(helper_config=helper_config)


class TestEmbedClientOllama:
    def test_payload(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)
        assert client.get_embed_payload(["a", "b"]) == {"model": "mxbai-embed-large", "input": ["a", "b"]}

    def test_missing_base_url(self, helper_config, env):
        env.delenv("EMBED_OLLAMA_BASE_URL", raising=False)
        with pytest.raises(ValueError):
            EmbedClientOllama(helper_config=helper_config)

    @pytest.mark.asyncio
    async def test_do_embed(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/embed"
            return httpx.Response(200, json={"embeddings": [[0.1, 0.2], [0.3, 0.4]]})

        mock_transport(client, handler)
        assert await client.do_embed(["a", "b"]) == [[0.1, 0.2], [0.3, 0.4]]
        await client.close()

    @pytest.mark.asyncio
    async def test_empty_input_skips_request(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)
        assert await client.do_embed([]) == []

    @pytest.mark.asyncio
    async def test_count_mismatch(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)
        mock_transport(client, lambda request: httpx.Response(200, json={"embeddings": [[0.1, 0.2]]}))
        with pytest.raises(EmbeddingError):
            await client.do_embed(["a", "b"])
        await client.close()

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, helper_config, ollama_env):
        ollama_env.setenv("EMBED_VECTOR_SIZE", "1024")
        client = EmbedClientOllama(helper_config=helper_config)
        mock_transport(client, lambda request: httpx.Response(200, json={"embeddings": [[0.1, 0.2]]}))
        with pytest.raises(EmbeddingError):
            await client.do_embed(["a"])
        await client.close()

    @pytest.mark.asyncio
    async def test_error_status(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)
        mock_transport(client, lambda request: httpx.Response(500, text="model not loaded"))
        with pytest.raises(EmbeddingError):
            await client.do_embed(["a"])
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        mock_transport(client, handler)
        with pytest.raises(EmbeddingError):
            await client.do_embed(["a"])
        await client.close()

    @pytest.mark.asyncio
    async def test_not_booted(self, helper_config, ollama_env):
        client = EmbedClientOllama(helper_config=helper_config)
        with pytest.raises(EmbeddingError):
            await client.do_embed(["a"])


class TestEmbedClientOpenai:
    @pytest.fixture
    def client(self, helper_config, env):
        env.setenv("EMBED_OPENAI_API_KEY", "sk-test")
        env.delenv("EMBED_MODEL", raising=False)
        env.delenv("EMBED_VECTOR_SIZE", raising=False)
        return EmbedClientOpenai(helper_config=helper_config)

    def test_defaults(self, client):
        assert client.embed_model == "text-embedding-ada-002"
        assert client._get_base_url() == "https://api.openai.com/v1"
        assert client._get_auth_header() == {"Authorization": "Bearer sk-test"}

    def test_requires_api_key(self, helper_config, env):
        env.delenv("EMBED_OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError):
            EmbedClientOpenai(helper_config=helper_config)

    def test_response_reordered_by_index(self, client):
        response = {"data": [{"embedding": [2.0], "index": 1}, {"embedding": [1.0], "index": 0}]}
        assert client.extract_embeddings_from_response(response) == [[1.0], [2.0]]

    def test_response_without_data(self, client):
        with pytest.raises(ValueError):
            client.extract_embeddings_from_response({"error": "bad"})
