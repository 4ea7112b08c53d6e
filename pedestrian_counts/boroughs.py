"""Resolve user-facing borough labels to the labels present in the data."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

import pandas as pd

from .parsing import is_nonempty

# A resolver returns the matching known labels, or an empty tuple to defer.
BoroughResolver = Callable[[str, Sequence[str]], tuple[str, ...]]

BOROUGH_SYNONYMS: dict[str, tuple[str, ...]] = {
    "The Bronx": ("Bronx", "The Bronx"),
    "Bronx": ("Bronx", "The Bronx"),
    "Bridges": ("Bridges", "East River Bridges", "Harlem River Bridges"),
}


def resolve_exact(label: str, known: Sequence[str]) -> tuple[str, ...]:
    return (label,) if label in known else ()


def resolve_case_insensitive(label: str, known: Sequence[str]) -> tuple[str, ...]:
    lowered = label.lower()
    for candidate in known:
        if candidate.lower() == lowered:
            return (candidate,)
    return ()


def resolve_substring(label: str, known: Sequence[str]) -> tuple[str, ...]:
    for candidate in known:
        if candidate in label or label in candidate:
            return (candidate,)
    return ()


def resolve_synonym(label: str, known: Sequence[str]) -> tuple[str, ...]:
    return tuple(b for b in BOROUGH_SYNONYMS.get(label, ()) if b in known)


RESOLVERS: tuple[BoroughResolver, ...] = (
    resolve_exact,
    resolve_case_insensitive,
    resolve_substring,
    resolve_synonym,
)


def normalize_borough(
    label: str,
    known: Sequence[str],
    resolvers: Sequence[BoroughResolver] = RESOLVERS,
) -> tuple[str, ...]:
    """Return the known labels matching ``label``.

    Resolvers are tried in order and the first non-empty answer wins; its
    labels are then widened with their synonyms present in ``known``. An
    unresolved label comes back unchanged so it still takes part in
    filtering (and matches nothing that is not in the data).
    """
    for resolver in resolvers:
        matched = resolver(label, known)
        if matched:
            return _with_synonyms(matched, known)
    return (label,)


def _with_synonyms(matched: tuple[str, ...], known: Sequence[str]) -> tuple[str, ...]:
    out = list(matched)
    for label in matched:
        for synonym in BOROUGH_SYNONYMS.get(label, ()):
            if synonym in known and synonym not in out:
                out.append(synonym)
    return tuple(out)


def normalize_boroughs(labels: Iterable[str], known: Sequence[str]) -> tuple[str, ...]:
    out: list[str] = []
    for label in labels:
        for match in normalize_borough(label, known):
            if match not in out:
                out.append(match)
    return tuple(out)


def known_boroughs(records: pd.DataFrame) -> tuple[str, ...]:
    """Distinct non-empty borough labels in first-appearance order."""
    labels = records["Borough"]
    labels = labels.loc[labels.map(is_nonempty).astype(bool)].astype(str)
    return tuple(pd.unique(labels))
