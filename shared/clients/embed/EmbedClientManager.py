from shared.helper.HelperConfig import HelperConfig
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager:
    """
    Manager class to instantiate the Embed client selected by EMBED_ENGINE.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the Embed engine from ENV configuration.

        Returns:
            str: Capitalised engine name (e.g. "Ollama", "Openai").

        Raises:
            ValueError: If EMBED_ENGINE is not set or empty.
        """
        engine = self.helper_config.get_string_val("EMBED_ENGINE")
        if not engine:
            raise ValueError("No Embed engine specified in configuration (EMBED_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> EmbedClientInterface:
        """
        Instantiates the Embed client from shared.clients.embed.{engine}.EmbedClient{Engine}.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"EmbedClient{engine}"
        try:
            module = __import__(
                f"shared.clients.embed.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported Embed engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated Embed client for engine: %s (model %s)", engine, client.embed_model)
        return client

    def get_client(self) -> EmbedClientInterface:
        return self.client
