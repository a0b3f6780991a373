"""
Search indexing and query engine package.

This package provides the in-memory search stack:
- loader: Record validation and the document table
- analyzers: Tokenizer and filters (casefold, stop-words)
- indexer: Inverted index construction (serial or partitioned)
- query: Query parsing (terms, quoted phrases)
- engine: Conjunctive matching and field-weighted scoring
- presenter / snippet: Snippets and highlight ranges
- corpus: Immutable corpus snapshots and the search entry points
- session: Query tickets, cancellation and corpus reload
- index_file: Reading exported index files
"""
