from pydantic import BaseModel


class ProcessingProgress(BaseModel):
    """Document counter of the embedding-generation workflow, updated after each document batch."""

    total: int = 0
    processed: int = 0
