"""Approximate matching of study designations against archive collection names."""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from rapidfuzz import fuzz, process, utils

# Matches fast-fuzzy's default 0.6 threshold on rapidfuzz's 0-100 scale.
DEFAULT_SCORE_CUTOFF = 60.0


def designation_score(
    query: str,
    candidate: str,
    *,
    score_cutoff: Optional[float] = None,
    **kwargs: Any,
) -> float:
    """Score how well ``query`` occurs inside ``candidate``.

    ``fuzz.partial_ratio`` aligns the shorter string inside the longer one, so
    a candidate shorter than the query is scored as a whole with
    ``fuzz.ratio`` instead. Otherwise a fragment such as ``gl`` would score
    100 against ``glioma01``.
    """

    if len(candidate) < len(query):
        return fuzz.ratio(query, candidate, score_cutoff=score_cutoff)
    return fuzz.partial_ratio(query, candidate, score_cutoff=score_cutoff)


def fuzzy_match(
    query: str,
    candidates: Sequence[str],
    *,
    score_cutoff: float = DEFAULT_SCORE_CUTOFF,
) -> List[str]:
    """Return ``candidates`` resembling ``query``, best score first.

    Scoring uses :func:`designation_score` so a short designation such as
    ``GLIOMA01`` can match inside a longer collection id such as
    ``icdc_glioma``. Both sides go through ``utils.default_process`` (lower
    case, punctuation to spaces) before scoring. Equal scores keep
    rapidfuzz's ordering.
    """

    if not query or not candidates:
        return []

    matches = process.extract(
        query,
        candidates,
        scorer=designation_score,
        processor=utils.default_process,
        score_cutoff=score_cutoff,
        limit=None,
    )
    return [choice for choice, _score, _index in matches]


__all__ = ["DEFAULT_SCORE_CUTOFF", "designation_score", "fuzzy_match"]
