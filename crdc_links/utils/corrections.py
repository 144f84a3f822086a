"""Per-study corrections for known upstream data-quality gaps.

Each entry is keyed by ICDC study designation. Adding a correction for another
study means adding a row to ``STUDY_CORRECTIONS``; nothing else should need to
branch on a designation string.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

DescriptionFixer = Callable[[str], str]

_GLIOMA_BREAKS_AND_LINKS = re.compile(r"\n\n|\s*\[.*?\]\s*")


def _clean_glioma_description(text: str) -> str:
    # IDC serves the GLIOMA01 description as loosely formatted HTML with inline links.
    cleaned = _GLIOMA_BREAKS_AND_LINKS.sub(" ", text)
    cleaned = cleaned.replace(" .", ".")
    return cleaned.replace(" ICDC-Glioma", "", 1)


@dataclass(frozen=True)
class StudyCorrection:
    """Adjustments applied to one study's IDC description and TCIA aggregates."""

    description_fixer: Optional[DescriptionFixer] = None
    extra_modalities: Tuple[str, ...] = ()
    extra_image_count: int = 0


STUDY_CORRECTIONS: Dict[str, StudyCorrection] = {
    # TCIA does not list the GLIOMA01 histopathology slides.
    "GLIOMA01": StudyCorrection(
        description_fixer=_clean_glioma_description,
        extra_modalities=("Histopathology",),
        extra_image_count=84,
    ),
}


def correction_for(study_designation: Optional[str]) -> Optional[StudyCorrection]:
    """Return the correction registered for ``study_designation``, if any."""

    if not study_designation:
        return None
    return STUDY_CORRECTIONS.get(study_designation)


__all__ = ["STUDY_CORRECTIONS", "StudyCorrection", "correction_for"]
