"""Centralized configuration for docs-search-engine using Pydantic Settings."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed engine configuration loaded from environment variables.

    Every option can be set through a ``DOCS_SEARCH_``-prefixed environment
    variable (or a ``.env`` file), or passed directly as a keyword argument
    when embedding the engine.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        frozen=True,
        extra="ignore",
    )

    # Tokenizer
    stop_words: str = Field(
        default="",
        description="Comma-separated stop-words removed at index and query time (empty keeps every token)",
    )

    # Scoring
    title_weight: float = Field(default=5.0, gt=0, description="Weight applied to each term occurrence in a title")
    text_weight: float = Field(default=1.0, gt=0, description="Weight applied to each term occurrence in body text")
    phrase_bonus: float = Field(
        default=1.0,
        ge=0.0,
        description="Extra weight per contiguous phrase occurrence, scaled by field weight and phrase length",
    )
    tf_saturation: float = Field(
        default=1.2,
        gt=0.0,
        description="BM25 k1: term frequency saturates towards k1 + 1 occurrences",
    )

    # Snippets
    snippet_max_chars: int = Field(default=240, ge=20, description="Maximum snippet length in characters")
    snippet_fallback_chars: int = Field(
        default=160,
        ge=0,
        description="Characters of body text shown when the match is in the title only",
    )

    # Index build
    build_workers: int = Field(default=1, ge=1, description="Worker threads used to build the inverted index")
    build_parallel_threshold: int = Field(
        default=2000,
        ge=1,
        description="Corpora smaller than this are always indexed on the calling thread",
    )

    # Observability
    corpus_name: str = Field(default="default", description="Label attached to index metrics for this corpus")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_field_weights(self) -> "Settings":
        ceiling = self.text_weight * (self.tf_saturation + 1)
        if self.title_weight <= ceiling:
            raise ValueError(
                f"title_weight ({self.title_weight}) must be greater than text_weight x (tf_saturation + 1) "
                f"({ceiling}) so a title match always outranks body-only matches"
            )
        return self

    def get_stop_words(self) -> frozenset[str]:
        """Return the configured stop-words, case-folded."""
        if not self.stop_words:
            return frozenset()
        return frozenset(word.strip().casefold() for word in self.stop_words.split(",") if word.strip())
