"""Tests for services.rag.LexicalMatcher: whole-word matching on circular number and title."""

from conftest import make_document
from services.rag.LexicalMatcher import LexicalMatcher


class TestLexicalMatcher:
    def test_circular_number_match_ranks_before_title_match(self):
        by_title = make_document(1, title="Amendments to Circular 1133")
        by_code = make_document(2, title="Capital adequacy", circular_number="1133")

        matched = LexicalMatcher().match("circular 1133", [by_title, by_code])

        assert [doc.id for doc in matched] == [2, 1]

    def test_case_insensitive(self):
        doc = make_document(1, title="Guidelines on Outsourcing")
        assert LexicalMatcher().match("OUTSOURCING rules", [doc]) == [doc]

    def test_whole_words_only(self):
        doc = make_document(1, title="Circular 1133", circular_number="1133")
        assert LexicalMatcher().match("113", [doc]) == []
        assert LexicalMatcher().match("Circ", [doc]) == []

    def test_document_appears_once(self):
        doc = make_document(1, title="Circular 1133 on 1133", circular_number="1133")
        assert LexicalMatcher().match("1133 circular", [doc]) == [doc]

    def test_blank_query_matches_nothing(self):
        assert LexicalMatcher().match("   ", [make_document(1, title="Anything")]) == []

    def test_search_results_score_one_with_excerpt(self):
        doc = make_document(7, title="Circular 1133", circular_number="1133", content="x" * 50)

        results = LexicalMatcher(excerpt_chars=20).search("1133", [doc])

        assert len(results) == 1
        assert results[0].score == 1.0
        assert results[0].document_id == 7
        assert results[0].text == "x" * 20
        assert results[0].source == "https://example.org/7.pdf"

    def test_unprocessed_document_has_empty_excerpt(self):
        doc = make_document(3, title="Circular 1133")
        assert LexicalMatcher().search("1133", [doc])[0].text == ""
