"""Unit tests for corpus record validation."""

import logging

import pytest

from docs_search_engine.domain.model import Category
from docs_search_engine.errors import CorpusLoadError, DuplicateAnchorError, SchemaError
from docs_search_engine.search.loader import load_documents


def _record(location: str, **fields) -> dict:
    return {"location": location, "page": fields.pop("page", "Page"), **fields}


@pytest.mark.unit
class TestLoadDocuments:
    def test_one_document_per_record_with_dense_ids(self, docs_records):
        documents = load_documents(docs_records)
        assert len(documents) == len(docs_records)
        assert [doc.id for doc in documents] == list(range(len(docs_records)))
        assert [doc.location for doc in documents] == [r["location"] for r in docs_records]

    def test_optional_fields_default_to_empty(self):
        (document,) = load_documents([{"location": "a", "page": "A", "title": None}])
        assert document.title == ""
        assert document.text == ""
        assert document.category is Category.UNSPECIFIED

    def test_non_string_optional_fields_are_coerced(self):
        (document,) = load_documents([_record("a", text=42)])
        assert document.text == "42"

    def test_accepts_any_iterable(self):
        documents = load_documents(_record(str(i)) for i in range(3))
        assert len(documents) == 3

    def test_empty_input_gives_empty_table(self):
        assert load_documents([]) == ()


@pytest.mark.unit
class TestSchemaErrors:
    def test_missing_location(self):
        with pytest.raises(SchemaError) as exc_info:
            load_documents([_record("a"), {"page": "B"}])
        assert exc_info.value.record_index == 1
        assert exc_info.value.field == "location"

    def test_null_page_is_missing(self):
        with pytest.raises(SchemaError, match="'page' is missing"):
            load_documents([{"location": "a", "page": None}])

    def test_blank_location(self):
        with pytest.raises(SchemaError, match="is empty"):
            load_documents([{"location": "   ", "page": "A"}])

    def test_non_string_location(self):
        with pytest.raises(SchemaError, match="must be a string"):
            load_documents([{"location": 7, "page": "A"}])

    def test_record_must_be_mapping(self):
        with pytest.raises(SchemaError) as exc_info:
            load_documents([["location", "page"]])
        assert exc_info.value.field == "<record>"

    def test_schema_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_documents([{}])


@pytest.mark.unit
class TestDuplicateAnchors:
    def test_duplicate_location_names_both_records(self):
        with pytest.raises(DuplicateAnchorError) as exc_info:
            load_documents([_record("#"), _record("x"), _record("#")])
        error = exc_info.value
        assert error.location == "#"
        assert (error.first_index, error.duplicate_index) == (0, 2)
        assert isinstance(error, CorpusLoadError)


@pytest.mark.unit
class TestCategories:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("function", Category.FUNCTION),
            (" Type ", Category.TYPE),
            ("SECTION", Category.SECTION),
            ("page", Category.PAGE),
            ("macro", Category.UNSPECIFIED),
            (None, Category.UNSPECIFIED),
            (3, Category.UNSPECIFIED),
        ],
    )
    def test_category_parsing(self, raw, expected):
        (document,) = load_documents([_record("a", category=raw)])
        assert document.category is expected

    def test_unknown_categories_are_summarized(self, caplog):
        with caplog.at_level(logging.INFO, logger="docs_search_engine.search.loader"):
            load_documents([_record("a", category="macro"), _record("b", category="keyword")])
        summary = [r for r in caplog.records if r.levelno == logging.INFO]
        assert len(summary) == 1
        assert summary[0].unknown_categories == 2
