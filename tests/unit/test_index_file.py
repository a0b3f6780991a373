"""Unit tests for reading exported search index files."""

import pytest

from docs_search_engine.errors import DuplicateAnchorError, IndexFileError
from docs_search_engine.search.corpus import load_corpus, search
from docs_search_engine.search.index_file import (
    coalesce_duplicate_records,
    parse_index_payload,
    read_index_file,
)


JS_INDEX = (
    'var documenterSearchIndex = {"docs":\n'
    '[{"location":"#","page":"Home","title":"Home","text":"FlameGraphs computes flame graphs.","category":"page"},'
    '{"location":"reference/#FlameGraphs.flamegraph","page":"Reference","title":"FlameGraphs.flamegraph",'
    '"text":"flamegraph(data) Compute a graph representation.","category":"function"},'
    '{"location":"#","page":"Home","title":"Home","text":"Colors indicate runtime dispatch.","category":"page"}]\n'
    "}\n"
)


@pytest.mark.unit
class TestParseIndexPayload:
    def test_javascript_wrapper(self):
        records = parse_index_payload(JS_INDEX)
        assert [r["location"] for r in records] == ["#", "reference/#FlameGraphs.flamegraph", "#"]

    def test_trailing_semicolon_and_bytes(self):
        raw = b'const searchIndex = {"docs": [{"location": "a", "page": "A"}]};\n'
        assert parse_index_payload(raw) == [{"location": "a", "page": "A"}]

    def test_plain_json_object(self):
        assert parse_index_payload('{"docs": []}') == []

    def test_plain_json_list(self):
        assert parse_index_payload('[{"location": "a", "page": "A"}]') == [{"location": "a", "page": "A"}]

    def test_byte_order_mark(self):
        assert parse_index_payload(b'\xef\xbb\xbf{"docs": []}') == []

    @pytest.mark.parametrize(
        ("raw", "message"),
        [
            ("var x = {not json", "not valid JSON"),
            ("", "not valid JSON"),
            ('{"pages": []}', "no 'docs' list"),
            ('{"docs": {"location": "a"}}', "no 'docs' list"),
            ("42", "must be an object or a list"),
        ],
    )
    def test_invalid_payloads(self, raw, message):
        with pytest.raises(IndexFileError, match=message):
            parse_index_payload(raw)


@pytest.mark.unit
class TestCoalesceDuplicateRecords:
    def test_merges_non_adjacent_repeats_into_first(self):
        records = parse_index_payload(JS_INDEX)
        merged = coalesce_duplicate_records(records)
        assert [r["location"] for r in merged] == ["#", "reference/#FlameGraphs.flamegraph"]
        assert merged[0]["text"] == "FlameGraphs computes flame graphs.\nColors indicate runtime dispatch."

    def test_does_not_mutate_input(self):
        records = parse_index_payload(JS_INDEX)
        coalesce_duplicate_records(records)
        assert records[0]["text"] == "FlameGraphs computes flame graphs."

    def test_empty_texts(self):
        records = [
            {"location": "#", "page": "Home", "title": "Home", "text": ""},
            {"location": "#", "page": "Home", "title": "Home", "text": "second"},
            {"location": "#", "page": "Home", "title": "Home"},
        ]
        (merged,) = coalesce_duplicate_records(records)
        assert merged["text"] == "second"

    def test_differing_duplicates_are_kept(self):
        records = [
            {"location": "#", "page": "Home", "title": "Home", "category": "page"},
            {"location": "#", "page": "Home", "title": "Intro", "category": "section"},
        ]
        merged = coalesce_duplicate_records(records)
        assert len(merged) == 2
        with pytest.raises(DuplicateAnchorError):
            load_corpus(merged)

    def test_malformed_records_pass_through(self):
        records = [["not", "a", "mapping"], {"page": "no location"}, {"location": "a", "page": ["x"]}]
        assert coalesce_duplicate_records(records) == records


@pytest.mark.unit
class TestReadIndexFile:
    def test_reads_and_coalesces(self, tmp_path):
        path = tmp_path / "search_index.js"
        path.write_text(JS_INDEX, encoding="utf-8")

        with pytest.raises(DuplicateAnchorError):
            load_corpus(read_index_file(path))

        corpus = load_corpus(read_index_file(path, coalesce_duplicates=True))
        assert len(corpus) == 2
        assert [r.location for r in search(corpus, "dispatch")] == ["#"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(IndexFileError, match="Cannot read"):
            read_index_file(tmp_path / "missing.js")
