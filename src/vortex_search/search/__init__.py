"""
Search indexing and query engine package.

This package provides a pure-Python search stack:
- analyzers: Normalization, stopwords, suffix stemming and bigrams
- fuzzy: Edit-distance correction of unknown query tokens
- synonyms: Query expansion from a static synonym table
- stats: BM25 corpus statistics and scoring
- snapshot: JSON persistence of the full engine state
- engine: Inverted index and query execution
"""
