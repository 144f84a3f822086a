"""Typed records for registry studies, archive responses, and mapping output."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Literal, Mapping, Optional, TypeVar, Union

T = TypeVar("T")

Repository = Literal["IDC", "TCIA"]


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass(frozen=True)
class IcdcStudy:
    """A study row from the Bento ``studiesByProgram`` query."""

    designation: str
    image_collection_count: Optional[int] = None
    crdc_node_count: Optional[int] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "IcdcStudy":
        return cls(
            designation=str(payload["clinical_study_designation"]),
            image_collection_count=_optional_int(payload.get("numberOfImageCollections")),
            crdc_node_count=_optional_int(payload.get("numberOfCRDCNodes")),
        )


@dataclass
class IdcCollection:
    """An IDC collection listing item; ``extra`` keeps the fields not modelled here."""

    collection_id: str
    description: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "IdcCollection":
        extra = {
            key: value
            for key, value in payload.items()
            if key not in {"collection_id", "description"}
        }
        return cls(
            collection_id=str(payload["collection_id"]),
            description=payload.get("description") or "",
            extra=extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"__typename": "IDCMetadata"}
        payload.update(self.extra)
        payload["collection_id"] = self.collection_id
        payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class TciaSeries:
    """One series row from the TCIA ``getSeries`` endpoint.

    ``image_count`` is kept as served and only parsed during aggregation.
    """

    image_count: Optional[str] = None
    patient_id: Optional[str] = None
    modality: Optional[str] = None
    body_part_examined: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "TciaSeries":
        return cls(
            image_count=_optional_str(payload.get("ImageCount")),
            patient_id=payload.get("PatientID"),
            modality=payload.get("Modality"),
            body_part_examined=payload.get("BodyPartExamined"),
        )


@dataclass
class TciaMetadata:
    """Aggregated statistics for one TCIA collection."""

    collection: str
    aggregate_patient_id: int
    aggregate_modality: List[Optional[str]]
    aggregate_body_part_examined: List[Optional[str]]
    aggregate_image_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "__typename": "TCIAMetadata",
            "Collection": self.collection,
            "Aggregate_PatientID": self.aggregate_patient_id,
            "Aggregate_Modality": list(self.aggregate_modality),
            "Aggregate_BodyPartExamined": list(self.aggregate_body_part_examined),
            "Aggregate_ImageCount": self.aggregate_image_count,
        }


@dataclass
class CollectionLink:
    """A matched external collection for a study."""

    repository: Repository
    url: str
    metadata: Union[IdcCollection, TciaMetadata]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repository": self.repository,
            "url": self.url,
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class StudyMapping:
    """Final output unit: a study and its external collection links."""

    study_designation: str
    crdc_node_count: Optional[int]
    image_collection_count: Optional[int]
    links: List[CollectionLink] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "CRDCLinks": [link.to_dict() for link in self.links],
            "numberOfCRDCNodes": self.crdc_node_count,
            "numberOfImageCollections": self.image_collection_count,
            "clinical_study_designation": self.study_designation,
        }


@dataclass
class FetchResult(Generic[T]):
    """Outcome of a tolerant fetch: ``data`` is the empty default when ``error`` is set."""

    data: T
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


__all__ = [
    "CollectionLink",
    "FetchResult",
    "IcdcStudy",
    "IdcCollection",
    "Repository",
    "StudyMapping",
    "TciaMetadata",
    "TciaSeries",
]
