"""Map IDC and TCIA image collections onto ICDC studies."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Union

import requests

from crdc_links.utils.archive_fetchers import (
    fetch_icdc_studies,
    fetch_idc_collections,
    fetch_tcia_collection_names,
    fetch_tcia_collections_data,
)
from crdc_links.utils.corrections import correction_for
from crdc_links.utils.env import load_env_file
from crdc_links.utils.errors import StudyCodeNotFoundError
from crdc_links.utils.fuzzy import fuzzy_match
from crdc_links.utils.models import (
    CollectionLink,
    IcdcStudy,
    IdcCollection,
    StudyMapping,
    TciaMetadata,
    TciaSeries,
)
from crdc_links.utils.settings import Settings
from crdc_links.utils.text_cleanup import normalize_description

logger = logging.getLogger(__name__)

TciaCollectionsData = Mapping[str, Sequence[TciaSeries]]


def build_idc_metadata(
    collection_id: str,
    idc_collections: Sequence[IdcCollection],
    study: IcdcStudy,
) -> IdcCollection:
    """Return the IDC record for ``collection_id`` with a plain-text description.

    The id always comes from matching against ``idc_collections`` itself, so a
    miss is a consistency bug and raises ``LookupError``.
    """

    try:
        collection = next(item for item in idc_collections if item.collection_id == collection_id)
    except StopIteration:
        raise LookupError(f"IDC collection '{collection_id}' not in fetched collections") from None

    return replace(
        collection,
        description=normalize_description(collection.description, study.designation),
    )


def _parse_image_count(collection_name: str, row: TciaSeries) -> int:
    if row.image_count is None:
        raise ValueError(f"TCIA series in {collection_name} has no ImageCount")
    return int(row.image_count)


def build_tcia_metadata(
    collection_name: str,
    tcia_collections_data: TciaCollectionsData,
    study: IcdcStudy,
) -> TciaMetadata:
    """Aggregate the series rows of one TCIA collection.

    ``ImageCount`` values are parsed with ``int``; a missing or non-numeric
    count raises ``ValueError`` rather than counting as zero.
    """

    series = tcia_collections_data[collection_name]

    total_images = sum(_parse_image_count(collection_name, row) for row in series)
    total_patients = len({row.patient_id for row in series})
    modalities = list(dict.fromkeys(row.modality for row in series))
    body_parts = list(dict.fromkeys(row.body_part_examined for row in series))

    correction = correction_for(study.designation)
    if correction is not None:
        modalities.extend(correction.extra_modalities)
        total_images += correction.extra_image_count

    return TciaMetadata(
        collection=collection_name,
        aggregate_patient_id=total_patients,
        aggregate_modality=modalities,
        aggregate_body_part_examined=body_parts,
        aggregate_image_count=total_images,
    )


def match_study_to_collections(
    study: IcdcStudy,
    idc_collections: Sequence[IdcCollection],
    tcia_collections: Sequence[str],
    tcia_collections_data: TciaCollectionsData,
    settings: Settings,
) -> List[CollectionLink]:
    """Find the IDC and TCIA collections that belong to ``study``.

    IDC links come first, then TCIA links, each in match order. TCIA
    collections without series rows are left out.
    """

    idc_matches = fuzzy_match(study.designation, [item.collection_id for item in idc_collections])
    tcia_matches = fuzzy_match(study.designation, tcia_collections)

    links: List[CollectionLink] = []
    for collection_id in idc_matches:
        links.append(
            CollectionLink(
                repository="IDC",
                url=f"{settings.idc_collection_base_url}{collection_id}",
                metadata=build_idc_metadata(collection_id, idc_collections, study),
            )
        )

    for collection_name in tcia_matches:
        if not tcia_collections_data.get(collection_name):
            logger.info("Skipping TCIA collection %s with no series data", collection_name)
            continue
        links.append(
            CollectionLink(
                repository="TCIA",
                url=f"{settings.tcia_collection_base_url}{collection_name}",
                metadata=build_tcia_metadata(collection_name, tcia_collections_data, study),
            )
        )
    return links


def collect_study_mappings(
    studies: Sequence[IcdcStudy],
    idc_collections: Sequence[IdcCollection],
    tcia_collections: Sequence[str],
    tcia_collections_data: TciaCollectionsData,
    settings: Settings,
) -> List[StudyMapping]:
    """Build a mapping for every study linked to at least one CRDC node."""

    mappings: List[StudyMapping] = []
    for study in studies:
        links = match_study_to_collections(
            study,
            idc_collections,
            tcia_collections,
            tcia_collections_data,
            settings,
        )
        if (study.crdc_node_count or 0) > 0:
            mappings.append(
                StudyMapping(
                    study_designation=study.designation,
                    crdc_node_count=study.crdc_node_count,
                    image_collection_count=study.image_collection_count,
                    links=links,
                )
            )
    return mappings


def map_external_data_to_studies(
    settings: Optional[Settings] = None,
    *,
    session: Optional[requests.Session] = None,
    study_code: Optional[str] = None,
    max_workers: int = 1,
) -> Union[List[StudyMapping], Exception]:
    """Fetch all sources and return the study mappings.

    A failed Bento query raises :class:`BackendNotConnectedError`, and an
    unknown ``study_code`` raises :class:`StudyCodeNotFoundError`. Any other
    failure is logged and returned instead of the mappings, so callers must
    check for an ``Exception`` result.
    """

    if settings is None:
        load_env_file()
        settings = Settings.from_env()

    studies = fetch_icdc_studies(settings, session=session)
    if study_code:
        studies = _select_study(studies, study_code)

    try:
        idc_collections = fetch_idc_collections(settings, session=session).data
        tcia_collections = fetch_tcia_collection_names(settings, session=session).data
        tcia_collections_data: Dict[str, List[TciaSeries]] = fetch_tcia_collections_data(
            tcia_collections,
            settings,
            session=session,
            max_workers=max_workers,
        )
        return collect_study_mappings(
            studies,
            idc_collections,
            tcia_collections,
            tcia_collections_data,
            settings,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Mapping external data to ICDC studies failed: %s", exc)
        return exc


def _select_study(studies: Sequence[IcdcStudy], study_code: str) -> List[IcdcStudy]:
    selected = [study for study in studies if study.designation == study_code]
    if not selected:
        raise StudyCodeNotFoundError(study_code)
    return selected


__all__ = [
    "build_idc_metadata",
    "build_tcia_metadata",
    "collect_study_mappings",
    "map_external_data_to_studies",
    "match_study_to_collections",
]
