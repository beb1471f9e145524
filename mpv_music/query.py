"""
Query Resolution

Resolves genre/artist/album/title filters against the in-memory Track
collection in two passes:

1. **Exact** — every term is compared for equality against the ``;``/``,``
   separated sub-values of the field (case-insensitive, trimmed). Skipped
   when genre, artist or album carries more than one term, since a
   multi-value query asks for the union.
2. **Partial** — case-insensitive substring match on the raw field text.

Filters are AND-ed across fields and OR-ed across the terms of one field.
Title is always a substring match and is never split on commas.

When the exact pass finds nothing and exactly one of genre/artist/album is
filtered, the distinct values of that field across the partial matches are
offered to the selection capability; tracks whose field equals the chosen
value (and that still pass the other filters) are returned. Aborting the
selection aborts the query.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from .models import Candidate, TAG_FIELDS, Track
from .selection import Selector

_SUBVALUE_SEP = re.compile(r"[;,]")


class QueryStatus(str, Enum):
    NO_MATCH = "no_match"
    SINGLE = "single"
    MULTIPLE = "multiple"
    ABORTED = "aborted"


def split_terms(raw: Optional[str]) -> List[str]:
    """'Pop, Rock ,' → ['pop', 'rock']"""
    if not raw:
        return []
    return [t.strip() for t in raw.lower().split(",") if t.strip()]


class Query(BaseModel):
    """Up to four field filters; each is a comma-separated list of terms."""

    genre: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    title: Optional[str] = Field(None, description="Substring, not split on commas")

    def filters(self) -> Dict[str, List[str]]:
        """Active filters as field → lower-cased terms. Blank filters are dropped."""
        active: Dict[str, List[str]] = {}
        for field in TAG_FIELDS:
            terms = split_terms(getattr(self, field))
            if terms:
                active[field] = terms
        if self.title and self.title.strip():
            active["title"] = [self.title.strip().lower()]
        return active

    @property
    def is_multi_value(self) -> bool:
        return any(len(split_terms(getattr(self, f))) > 1 for f in TAG_FIELDS)

    def is_empty(self) -> bool:
        return not self.filters()


class QueryResult(BaseModel):
    status: QueryStatus
    tracks: List[Track] = Field(default_factory=list)
    match_pass: Optional[str] = Field(None, description="exact or partial")
    clarified_field: Optional[str] = None
    clarified_value: Optional[str] = None
    ambiguous_values: List[str] = Field(
        default_factory=list,
        description="Distinct values left unresolved when no selector was available",
    )

    @classmethod
    def from_tracks(cls, tracks: List[Track], match_pass: Optional[str] = None, **kw) -> "QueryResult":
        if not tracks:
            status = QueryStatus.NO_MATCH
        elif len(tracks) == 1:
            status = QueryStatus.SINGLE
        else:
            status = QueryStatus.MULTIPLE
        return cls(status=status, tracks=tracks, match_pass=match_pass, **kw)

    @classmethod
    def aborted(cls) -> "QueryResult":
        return cls(status=QueryStatus.ABORTED)

    @property
    def paths(self) -> List[str]:
        return [t.path for t in self.tracks]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def field_matches(text: str, terms: Sequence[str], exact: bool) -> bool:
    """True if any term matches ``text`` (terms must already be lower-cased)."""
    lowered = text.lower()
    if exact:
        subvalues = {s.strip() for s in _SUBVALUE_SEP.split(lowered)}
        return any(term in subvalues for term in terms)
    return any(term in lowered for term in terms)


def track_matches(track: Track, filters: Dict[str, List[str]], exact: bool) -> bool:
    for field, terms in filters.items():
        # title is always partial
        field_exact = exact and field != "title"
        if not field_matches(getattr(track, field), terms, field_exact):
            return False
    return True


class QueryResolver:
    """Two-pass matcher over a read-only Track collection."""

    def __init__(self, tracks: Sequence[Track], selector: Optional[Selector] = None) -> None:
        self.tracks = tracks
        self.selector = selector

    def match(self, query: Query, exact: bool) -> List[Track]:
        return self._filter(query.filters(), exact)

    def _filter(self, filters: Dict[str, List[str]], exact: bool) -> List[Track]:
        return [t for t in self.tracks if track_matches(t, filters, exact)]

    def resolve(self, query: Query) -> QueryResult:
        filters = query.filters()
        multi = query.is_multi_value

        if not multi:
            exact = self._filter(filters, exact=True)
            if exact:
                logger.debug(f"Exact match: {len(exact)} track(s)")
                return QueryResult.from_tracks(exact, match_pass="exact")
            logger.debug("Exact match failed, trying partial...")
        else:
            logger.debug("Multi-value query, skipping exact pass")

        partial = self._filter(filters, exact=False)
        if not partial:
            return QueryResult.from_tracks([])

        tag_fields = [f for f in TAG_FIELDS if f in filters]
        if multi or len(tag_fields) != 1:
            return QueryResult.from_tracks(partial, match_pass="partial")

        field = tag_fields[0]
        options = sorted({getattr(t, field) for t in partial}, key=str.lower)
        if len(options) <= 1:
            return QueryResult.from_tracks(partial, match_pass="partial")

        if self.selector is None:
            logger.debug(f"Ambiguous {field} ({len(options)} values) and no selector")
            return QueryResult.from_tracks(
                partial, match_pass="partial", ambiguous_values=options
            )

        return self._clarify(filters, field, options, partial)

    def _clarify(
        self,
        filters: Dict[str, List[str]],
        field: str,
        options: List[str],
        partial: List[Track],
    ) -> QueryResult:
        counts: Dict[str, int] = {}
        for t in partial:
            value = getattr(t, field)
            counts[value] = counts.get(value, 0) + 1
        candidates = [
            Candidate(display=o, value=o, preview=f"{counts[o]} track(s)") for o in options
        ]

        logger.info(f"Ambiguous {field}: asking which of {len(options)} values was meant")
        choice = self.selector.select(candidates, allow_multi=False)
        if choice.aborted or not choice.chosen:
            logger.info("Clarification aborted")
            return QueryResult.aborted()

        clarified = choice.chosen[0]
        target = clarified.strip().lower()
        others = {f: terms for f, terms in filters.items() if f != field}
        # the chosen value is a whole field, matched as such
        tracks = [
            t for t in self.tracks
            if getattr(t, field).strip().lower() == target
            and track_matches(t, others, exact=True)
        ]
        return QueryResult.from_tracks(
            tracks,
            match_pass="exact",
            clarified_field=field,
            clarified_value=clarified,
        )
