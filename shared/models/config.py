from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single configuration key a client requires from the environment.

    Attributes:
        env_key (str): Raw key name; clients prefix it with "{TYPE}_{ENGINE}_" (e.g. "BASE_URL" → "EMBED_OLLAMA_BASE_URL").
        val_type (str): Expected value type: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Fallback value. None marks the key as mandatory.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None
