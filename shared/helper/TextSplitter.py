"""Recursive character text splitting.

Splits on the coarsest separator that occurs in the text (paragraphs, then lines,
then words, then characters) and merges the pieces back into chunks of at most
chunk_size characters with up to chunk_overlap characters of shared context.
Output is deterministic for identical input.
"""

from langchain_text_splitters import RecursiveCharacterTextSplitter

DEFAULT_SEPARATORS = ["\n\n", "\n", " ", ""]


class TextSplitter:
    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200, separators: list[str] | None = None) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive. Got: {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(f"chunk_overlap must be in [0, chunk_size). Got: {chunk_overlap} for chunk_size {chunk_size}")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            separators=separators or DEFAULT_SEPARATORS,
            length_function=len,
        )

    def split(self, text: str) -> list[str]:
        """Split text into ordered spans.

        Args:
            text (str): The full document text.

        Returns:
            list[str]: Spans of at most chunk_size characters (stripped, non-empty).
        """
        if not text or not text.strip():
            return []
        return self._splitter.split_text(text)
