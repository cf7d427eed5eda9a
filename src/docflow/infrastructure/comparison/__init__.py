"""Document comparison adapters."""

from docflow.infrastructure.comparison.word_set_comparer import WordSetComparer

__all__ = ["WordSetComparer"]
