"""Merge detector outputs into one prioritized list."""

from __future__ import annotations

from collections.abc import Iterable

from lifeos.optimization.models import OptimizationSuggestion


def rank(suggestions: Iterable[OptimizationSuggestion]) -> list[OptimizationSuggestion]:
    """Sort by ``priority * confidence`` descending; ties keep emission order."""
    return sorted(suggestions, key=lambda s: s.score, reverse=True)


def merge(
    *batches: Iterable[OptimizationSuggestion],
) -> list[OptimizationSuggestion]:
    """Concatenate detector batches, dropping repeated ids (first one wins), then rank."""
    seen: set[str] = set()
    merged: list[OptimizationSuggestion] = []
    for batch in batches:
        for suggestion in batch:
            if suggestion.id in seen:
                continue
            seen.add(suggestion.id)
            merged.append(suggestion)
    return rank(merged)
