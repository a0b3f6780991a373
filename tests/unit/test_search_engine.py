"""Unit tests for matching and ranking."""

import pytest

from docs_search_engine.config import Settings
from docs_search_engine.search.analyzers import DocumentAnalyzer
from docs_search_engine.search.corpus import load_corpus, search
from docs_search_engine.search.engine import QueryEngine, intersect_sorted, saturated_tf
from docs_search_engine.search.indexer import build_index
from docs_search_engine.search.loader import load_documents
from docs_search_engine.search.models import Field
from docs_search_engine.search.query import parse_query


def _locations(results) -> list[str]:
    return [result.location for result in results]


def _corpus(*records: dict, **overrides):
    return load_corpus(
        [{"page": "Page", **record} for record in records],
        Settings(**overrides) if overrides else None,
    )


class _Stop(Exception):
    pass


@pytest.mark.unit
class TestFlameGraphScenario:
    def test_single_term_ranks_title_match_first(self, flame_corpus):
        results = search(flame_corpus, "flame")
        assert _locations(results) == ["p1", "p2"]
        assert results[0].score == pytest.approx(6.0)
        assert results[1].score == pytest.approx(1.0)

    def test_quoted_phrase_requires_adjacency(self, flame_corpus):
        results = search(flame_corpus, '"flame graph"')
        assert _locations(results) == ["p1"]
        # 2 terms x (title 5 + text 1) plus a bonus of weight x 2 terms in each field
        assert results[0].score == pytest.approx(24.0)

    def test_empty_query_returns_nothing(self, flame_corpus):
        assert search(flame_corpus, "") == []
        assert search(flame_corpus, "   ") == []

    def test_reload_gives_identical_rankings(self, flame_records, settings):
        first = load_corpus(flame_records, settings)
        second = load_corpus(flame_records, settings)
        for query in ("flame", '"flame graph"', "data", "palette flame"):
            assert search(first, query) == search(second, query)


@pytest.mark.unit
class TestConjunctiveMatching:
    def test_all_clauses_required(self):
        corpus = _corpus(
            {"location": "both", "text": "alpha and beta"},
            {"location": "alpha-only", "text": "alpha alone"},
        )
        assert _locations(search(corpus, "alpha beta")) == ["both"]
        assert _locations(search(corpus, "alpha")) == ["both", "alpha-only"]

    def test_clauses_may_match_different_fields(self):
        corpus = _corpus({"location": "a", "title": "alpha", "text": "beta"})
        assert _locations(search(corpus, "alpha beta")) == ["a"]

    def test_unknown_term_matches_nothing(self, flame_corpus):
        assert search(flame_corpus, "flame nonexistent") == []


@pytest.mark.unit
class TestPhraseMatching:
    def test_non_adjacent_terms_excluded(self):
        corpus = _corpus({"location": "a", "text": "alpha gamma beta"})
        assert search(corpus, '"alpha beta"') == []
        assert _locations(search(corpus, "alpha beta")) == ["a"]

    def test_phrase_must_be_inside_one_field(self):
        corpus = _corpus({"location": "a", "title": "intro alpha", "text": "beta follows"})
        assert search(corpus, '"alpha beta"') == []

    def test_phrase_order_matters(self):
        corpus = _corpus({"location": "a", "text": "beta alpha"})
        assert search(corpus, '"alpha beta"') == []

    def test_dotted_identifier_matches_qualified_title(self, docs_corpus):
        results = search(docs_corpus, "FlameGraphs.flamegraph")
        assert _locations(results) == ["reference/#FlameGraphs.flamegraph"]

    def test_unterminated_quote_never_raises(self, flame_corpus):
        assert _locations(search(flame_corpus, '"flame graph')) == ["p1"]
        assert search(flame_corpus, '"') == []


@pytest.mark.unit
class TestRanking:
    def test_title_hit_outranks_repeated_text_hits(self):
        corpus = _corpus(
            {"location": "text-heavy", "title": "Other", "text": " ".join(["flame"] * 50)},
            {"location": "titled", "title": "Flame", "text": ""},
        )
        results = search(corpus, "flame")
        assert _locations(results) == ["titled", "text-heavy"]
        assert results[0].score >= results[1].score

    def test_ties_keep_corpus_order(self):
        corpus = _corpus(
            {"location": "c", "text": "flame"},
            {"location": "a", "text": "flame"},
            {"location": "b", "text": "flame"},
        )
        assert _locations(search(corpus, "flame")) == ["c", "a", "b"]

    def test_term_frequency_saturates(self):
        corpus = _corpus(
            {"location": "once", "text": "flame"},
            {"location": "many", "text": "flame flame flame flame"},
        )
        results = search(corpus, "flame")
        assert _locations(results) == ["many", "once"]
        assert results[0].score < 2.2

    def test_custom_weights_from_settings(self):
        corpus = _corpus(
            {"location": "a", "title": "flame", "text": "flame"},
            title_weight=10.0,
            text_weight=2.0,
        )
        assert search(corpus, "flame")[0].score == pytest.approx(12.0)


@pytest.mark.unit
class TestLimit:
    def test_limit_truncates(self, flame_corpus):
        assert _locations(search(flame_corpus, "flame", limit=1)) == ["p1"]

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_is_empty(self, flame_corpus, limit):
        assert search(flame_corpus, "flame", limit=limit) == []

    def test_no_limit_is_unbounded(self, flame_corpus):
        assert len(search(flame_corpus, "flame", limit=None)) == 2


@pytest.mark.unit
class TestQueryEngine:
    @pytest.fixture
    def engine(self, flame_records):
        return QueryEngine(build_index(load_documents(flame_records), DocumentAnalyzer()))

    def test_matched_terms_per_field(self, engine):
        (scored,) = engine.execute(parse_query('"flame graph"', DocumentAnalyzer()))
        assert scored.doc_id == 0
        assert scored.terms_in(Field.TITLE) == {"flame", "graph"}
        assert scored.terms_in(Field.TEXT) == {"flame", "graph"}

    def test_title_only_term_has_no_text_terms(self, engine):
        (scored,) = engine.execute(parse_query("colors", DocumentAnalyzer()))
        assert scored.doc_id == 1
        assert scored.terms_in(Field.TEXT) == frozenset()

    def test_candidates_intersect_all_terms(self, engine):
        assert engine.candidates(parse_query("flame", DocumentAnalyzer())) == [0, 1]
        assert engine.candidates(parse_query("flame graph", DocumentAnalyzer())) == [0]

    def test_checkpoint_exception_abandons_query(self, engine):
        def checkpoint():
            raise _Stop

        with pytest.raises(_Stop):
            engine.execute(parse_query("flame graph", DocumentAnalyzer()), checkpoint=checkpoint)

    def test_rejects_weights_that_let_text_outrank_title(self, flame_records):
        index = build_index(load_documents(flame_records), DocumentAnalyzer())
        with pytest.raises(ValueError, match="Title weight"):
            QueryEngine(index, field_weights={Field.TITLE: 2.0})


@pytest.mark.unit
class TestHelpers:
    def test_intersect_sorted(self):
        assert intersect_sorted([1, 3, 5, 7], [0, 3, 4, 7, 9]) == [3, 7]
        assert intersect_sorted([], [1]) == []

    def test_saturated_tf(self):
        assert saturated_tf(0) == 0.0
        assert saturated_tf(1) == pytest.approx(1.0)
        assert saturated_tf(2) > saturated_tf(1)
        assert saturated_tf(10_000) < 2.2
