"""Fuzzy catalog search over plugin names and author names.

Queries use an extended syntax: whitespace-separated tokens must all match
(AND), and groups separated by `` | `` are alternatives (OR).

    ===========  ======================================
    Token        Matches a field that
    ===========  ======================================
    ``jscript``  fuzzy-matches ``jscript``
    ``'word``    contains ``word``
    ``=word``    is exactly ``word``
    ``^word``    starts with ``word``
    ``word$``    ends with ``word``
    ``!word``    does not contain ``word``
    ``!^word``   does not start with ``word``
    ``!word$``   does not end with ``word``
    ===========  ======================================

A query is evaluated against each searchable field of an entry (its name
and every author name); the entry's score is its best field score.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from thefuzz import fuzz

from plugin_catalog.domain.plugin import PluginEntry


DEFAULT_THRESHOLD = 0.3

PERFECT_SCORE = 0.0
NO_MATCH_SCORE = 1.0

_OR_SEPARATOR = re.compile(r"\s+\|\s+")


class TokenKind(Enum):
    """How a single query token is compared against a field."""

    FUZZY = "fuzzy"
    INCLUDE = "include"
    EXACT = "exact"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    INVERSE_INCLUDE = "inverse_include"
    INVERSE_PREFIX = "inverse_prefix"
    INVERSE_SUFFIX = "inverse_suffix"


_INVERSE_KINDS = frozenset({TokenKind.INVERSE_INCLUDE, TokenKind.INVERSE_PREFIX, TokenKind.INVERSE_SUFFIX})


@dataclass(frozen=True)
class SearchToken:
    """A parsed query token with a lowercased pattern."""

    kind: TokenKind
    pattern: str

    @property
    def is_inverse(self) -> bool:
        return self.kind in _INVERSE_KINDS


def _parse_token(raw: str) -> SearchToken:
    """Parse one whitespace-free token, falling back to fuzzy when no operator applies."""
    text = raw.lower()

    if text.startswith("!^") and len(text) > 2:
        return SearchToken(TokenKind.INVERSE_PREFIX, text[2:])
    if text.startswith("!") and text.endswith("$") and len(text) > 2:
        return SearchToken(TokenKind.INVERSE_SUFFIX, text[1:-1])
    if text.startswith("!") and len(text) > 1:
        return SearchToken(TokenKind.INVERSE_INCLUDE, text[1:])
    if text.startswith("=") and len(text) > 1:
        return SearchToken(TokenKind.EXACT, text[1:])
    if text.startswith("'") and len(text) > 1:
        return SearchToken(TokenKind.INCLUDE, text[1:])
    if text.startswith("^") and len(text) > 1:
        return SearchToken(TokenKind.PREFIX, text[1:])
    if text.endswith("$") and len(text) > 1:
        return SearchToken(TokenKind.SUFFIX, text[:-1])
    return SearchToken(TokenKind.FUZZY, text)


def parse_query(query: str) -> list[list[SearchToken]]:
    """Parse a query into OR-groups of AND-ed tokens.

    A whitespace-only query is kept as a single literal fuzzy token.
    """
    if not query.strip():
        return [[SearchToken(TokenKind.FUZZY, query.lower())]]

    groups = []
    for group in _OR_SEPARATOR.split(query.strip()):
        tokens = [_parse_token(raw) for raw in group.split()]
        if tokens:
            groups.append(tokens)
    return groups


def fuzzy_score(pattern: str, text: str) -> float:
    """Normalized distance between a pattern and a field (0=exact, 1=no match).

    The pattern is aligned against the best-matching substring of the text;
    a pattern longer than the text is compared as a whole.
    """
    if not pattern or not text:
        return NO_MATCH_SCORE
    scorer = fuzz.partial_ratio if len(pattern) <= len(text) else fuzz.ratio
    return NO_MATCH_SCORE - scorer(pattern, text) / 100


def _token_score(token: SearchToken, field: str) -> float:
    """Score a single token against a lowercased field."""
    match token.kind:
        case TokenKind.FUZZY:
            return fuzzy_score(token.pattern, field)
        case TokenKind.INCLUDE:
            matched = token.pattern in field
        case TokenKind.EXACT:
            matched = token.pattern == field
        case TokenKind.PREFIX:
            matched = field.startswith(token.pattern)
        case TokenKind.SUFFIX:
            matched = field.endswith(token.pattern)
        case TokenKind.INVERSE_INCLUDE:
            matched = token.pattern not in field
        case TokenKind.INVERSE_PREFIX:
            matched = not field.startswith(token.pattern)
        case TokenKind.INVERSE_SUFFIX:
            matched = not field.endswith(token.pattern)
    return PERFECT_SCORE if matched else NO_MATCH_SCORE


def _group_score(tokens: list[SearchToken], field: str, threshold: float) -> float | None:
    """Score an AND-group against a field, or None if any token fails."""
    scores = []
    for token in tokens:
        score = _token_score(token, field)
        if score > threshold:
            return None
        if not token.is_inverse:
            scores.append(score)
    return sum(scores) / len(scores) if scores else PERFECT_SCORE


class SearchIndex:
    """Lowercased search fields for a fixed collection of catalog entries.

    The index keeps a reference to the collection it was built from and never
    copies or mutates the entries.
    """

    def __init__(self, collection: Sequence[PluginEntry], *, threshold: float = DEFAULT_THRESHOLD) -> None:
        self.collection = collection
        self.threshold = threshold
        self._fields: list[tuple[str, ...]] = [
            (entry.name.lower(), *(author.name.lower() for author in entry.authors)) for entry in collection
        ]

    def _entry_score(self, groups: list[list[SearchToken]], fields: tuple[str, ...]) -> float | None:
        best: float | None = None
        for field in fields:
            for tokens in groups:
                score = _group_score(tokens, field, self.threshold)
                if score is not None and (best is None or score < best):
                    best = score
        return best

    def search(self, query: str) -> Sequence[PluginEntry]:
        """Return entries matching the query, best match first.

        An empty query returns the indexed collection itself, in its original order.
        Ties keep collection order.
        """
        if not query:
            return self.collection

        groups = parse_query(query)
        scored: list[tuple[float, int]] = []
        for position, fields in enumerate(self._fields):
            score = self._entry_score(groups, fields)
            if score is not None:
                scored.append((score, position))

        scored.sort()
        return [self.collection[position] for _, position in scored]


def search(
    collection: Sequence[PluginEntry],
    query: str,
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> Sequence[PluginEntry]:
    """Fuzzy search a collection of catalog entries.

    Args:
        collection: Entries in their original (display) order
        query: User's search query, in extended syntax
        threshold: Maximum score for an entry to be included

    Returns:
        The collection itself for an empty query, otherwise a new list of matching entries
    """
    if not query:
        return collection
    return SearchIndex(collection, threshold=threshold).search(query)
