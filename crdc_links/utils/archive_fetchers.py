"""HTTP retrieval of ICDC studies and of IDC / TCIA collection metadata.

The IDC and TCIA fetchers are tolerant: any transport or payload failure is
logged and reported through :class:`FetchResult` with empty ``data``. The
Bento study query is not; its failure raises
:class:`BackendNotConnectedError` because nothing useful can be mapped
without the study list.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

import requests

from .errors import BackendNotConnectedError
from .models import FetchResult, IcdcStudy, IdcCollection, TciaSeries
from .settings import Settings

logger = logging.getLogger(__name__)

IDC_COLLECTION_PREFIX = "icdc_"
TCIA_COLLECTION_PREFIX = "ICDC-"

IDC_API_COLLECTIONS_ENDPOINT = "collections"
TCIA_API_COLLECTIONS_ENDPOINT = "getCollectionValues"
TCIA_API_SERIES_ENDPOINT = "getSeries"

STUDIES_QUERY = """{
    studiesByProgram {
        clinical_study_designation
        numberOfImageCollections
        numberOfCRDCNodes
    }
}"""

# Failures a tolerant fetch absorbs: transport errors, undecodable JSON and
# payloads missing the fields we model.
_TOLERATED_ERRORS = (requests.RequestException, ValueError, KeyError, TypeError)


@contextmanager
def _session_scope(session: Optional[requests.Session]) -> Iterator[requests.Session]:
    if session is not None:
        yield session
        return
    owned = requests.Session()
    try:
        yield owned
    finally:
        owned.close()


def filter_records(
    records: Iterable[Mapping[str, Any]],
    field: str,
    key: str,
) -> List[Mapping[str, Any]]:
    """Keep the records whose ``field`` value contains ``key``."""

    return [record for record in records if key in str(record.get(field) or "")]


def select_fields(
    records: Iterable[Mapping[str, Any]],
    fields: Sequence[str],
) -> List[Dict[str, Any]]:
    """Project each record onto ``fields``, skipping keys it does not have."""

    return [{key: record[key] for key in fields if key in record} for record in records]


def _get_json(session: requests.Session, url: str, *, timeout: float, **kwargs: Any) -> Any:
    response = session.get(url, timeout=timeout, **kwargs)
    response.raise_for_status()
    return response.json()


def fetch_idc_collections(
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
) -> FetchResult[List[IdcCollection]]:
    """Return the IDC collections whose id carries the ICDC prefix."""

    url = f"{settings.idc_api_base_url}{IDC_API_COLLECTIONS_ENDPOINT}"
    try:
        with _session_scope(session) as active:
            payload = _get_json(active, url, timeout=settings.request_timeout)
        items = filter_records(payload["collections"], "collection_id", IDC_COLLECTION_PREFIX)
        collections = [IdcCollection.from_json(item) for item in items]
    except _TOLERATED_ERRORS as exc:
        logger.error("Failed to fetch IDC collections from %s: %s", url, exc)
        return FetchResult(data=[], error=exc)

    logger.info("Fetched %d ICDC collections from IDC", len(collections))
    return FetchResult(data=collections)


def fetch_tcia_collection_names(
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
) -> FetchResult[List[str]]:
    """Return the TCIA collection names carrying the ICDC prefix."""

    url = f"{settings.tcia_api_base_url}{TCIA_API_COLLECTIONS_ENDPOINT}"
    try:
        with _session_scope(session) as active:
            payload = _get_json(active, url, timeout=settings.request_timeout)
        names = [
            str(record["Collection"])
            for record in filter_records(payload, "Collection", TCIA_COLLECTION_PREFIX)
        ]
    except _TOLERATED_ERRORS as exc:
        logger.error("Failed to fetch TCIA collections from %s: %s", url, exc)
        return FetchResult(data=[], error=exc)

    logger.info("Fetched %d ICDC collections from TCIA", len(names))
    return FetchResult(data=names)


def fetch_tcia_collection_series(
    collection_name: str,
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
) -> FetchResult[List[TciaSeries]]:
    """Return the series rows TCIA holds for one collection."""

    url = f"{settings.tcia_api_base_url}{TCIA_API_SERIES_ENDPOINT}"
    try:
        with _session_scope(session) as active:
            payload = _get_json(
                active,
                url,
                params={"Collection": collection_name},
                timeout=settings.request_timeout,
            )
        series = [TciaSeries.from_json(record) for record in payload]
    except _TOLERATED_ERRORS as exc:
        logger.error("Failed to fetch TCIA series for %s: %s", collection_name, exc)
        return FetchResult(data=[], error=exc)

    return FetchResult(data=series)


def fetch_tcia_collections_data(
    collection_names: Sequence[str],
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
    max_workers: int = 1,
) -> Dict[str, List[TciaSeries]]:
    """Fetch series rows for every named TCIA collection.

    A collection whose fetch fails maps to an empty list. With
    ``max_workers > 1`` the per-collection requests run on a thread pool;
    the returned mapping is ordered like ``collection_names`` either way.
    ``requests.Session`` is not documented as thread-safe, so without an
    injected ``session`` each pooled request opens and closes its own. An
    injected session is shared by the workers and must tolerate that.
    """

    if max_workers <= 1 or len(collection_names) <= 1:
        with _session_scope(session) as active:
            results = [
                fetch_tcia_collection_series(name, settings, session=active)
                for name in collection_names
            ]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(
                pool.map(
                    lambda name: fetch_tcia_collection_series(name, settings, session=session),
                    collection_names,
                )
            )

    return {name: result.data for name, result in zip(collection_names, results)}


def fetch_icdc_studies(
    settings: Settings,
    *,
    session: Optional[requests.Session] = None,
) -> List[IcdcStudy]:
    """Query the Bento backend for every ICDC study.

    Raises :class:`BackendNotConnectedError` when the backend cannot be
    reached or answers with something other than JSON study rows.
    """

    url = settings.bento_backend_graphql_uri
    try:
        with _session_scope(session) as active:
            response = active.post(
                url,
                json={"query": STUDIES_QUERY},
                timeout=settings.request_timeout,
            )
            response.raise_for_status()
            payload = response.json()
        rows = (payload.get("data") or {}).get("studiesByProgram")
        if rows is None:
            logger.warning("Bento response from %s has no studiesByProgram data", url)
            return []
        studies = [IcdcStudy.from_json(row) for row in rows]
    except _TOLERATED_ERRORS + (AttributeError,) as exc:
        logger.error("Failed to query ICDC studies from %s: %s", url, exc)
        raise BackendNotConnectedError(f"Unable to query ICDC studies from {url}") from exc

    logger.info("Fetched %d ICDC studies", len(studies))
    return studies


__all__ = [
    "IDC_COLLECTION_PREFIX",
    "STUDIES_QUERY",
    "TCIA_COLLECTION_PREFIX",
    "fetch_icdc_studies",
    "fetch_idc_collections",
    "fetch_tcia_collection_names",
    "fetch_tcia_collection_series",
    "fetch_tcia_collections_data",
    "filter_records",
    "select_fields",
]
