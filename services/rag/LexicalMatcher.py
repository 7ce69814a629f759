"""Whole-word matching of query words against circular numbers and titles."""

from shared.models.document import Document
from shared.models.search import SearchResult

LEXICAL_MATCH_SCORE = 1.0


def tokenize(text: str) -> set[str]:
    """Lowercased whitespace-delimited words of text."""
    return set(text.lower().split())


class LexicalMatcher:
    """Boolean lexical signal: a document either matches the query or it does not.

    Exact identifiers such as a circular number may embed poorly; this pass makes
    sure documents named in the query surface regardless of embedding quality.
    """

    def __init__(self, excerpt_chars: int = 1000) -> None:
        self.excerpt_chars = excerpt_chars

    def match(self, query: str, documents: list[Document]) -> list[Document]:
        """Documents sharing a whole word with the query.

        Circular-number matches come first, then title-only matches, each group in
        store order. A document appears at most once.
        """
        query_words = tokenize(query)
        if not query_words:
            return []

        by_code: list[Document] = []
        by_title: list[Document] = []
        for doc in documents:
            if query_words & tokenize(doc.circular_number):
                by_code.append(doc)
            elif query_words & tokenize(doc.title):
                by_title.append(doc)
        return by_code + by_title

    def search(self, query: str, documents: list[Document]) -> list[SearchResult]:
        """Lexical matches as SearchResults, all scored 1.0 regardless of match count.

        The result text is the first excerpt_chars characters of the document content
        (SEARCH_EXCERPT_CHARS), not the full text, so the answer context built from a
        lexical hit is truncated too.
        """
        return [
            SearchResult(
                document_id=doc.id,
                circular_number=doc.circular_number,
                title=doc.title,
                source=doc.download_link or "",
                text=(doc.content or "")[: self.excerpt_chars],
                score=LEXICAL_MATCH_SCORE,
            )
            for doc in self.match(query, documents)
        ]
