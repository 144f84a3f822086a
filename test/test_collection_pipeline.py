import unittest

import requests

from crdc_links.pipelines import collection_mapping
from crdc_links.pipelines.collection_mapping import map_external_data_to_studies
from crdc_links.utils.errors import BackendNotConnectedError, StudyCodeNotFoundError
from crdc_links.utils.models import StudyMapping

from test_archive_fetchers import (
    IDC_URL,
    SETTINGS,
    TCIA_NAMES_URL,
    MockResponse,
    MockSession,
    _series_key,
)

BENTO_KEY = (SETTINGS.bento_backend_graphql_uri, tuple())

STUDIES_PAYLOAD = {
    "data": {
        "studiesByProgram": [
            {
                "clinical_study_designation": "GLIOMA01",
                "numberOfImageCollections": 2,
                "numberOfCRDCNodes": 2,
            },
            {
                "clinical_study_designation": "COTC007B",
                "numberOfImageCollections": 1,
                "numberOfCRDCNodes": 1,
            },
            {
                "clinical_study_designation": "UBC01",
                "numberOfImageCollections": 0,
                "numberOfCRDCNodes": 0,
            },
        ]
    }
}

IDC_PAYLOAD = {
    "collections": [
        {"collection_id": "icdc_glioma", "description": "<p>Canine glioma</p>"},
        {"collection_id": "icdc_cotc007b", "description": "<p>COTC007B</p>"},
    ]
}

TCIA_NAMES_PAYLOAD = [{"Collection": "ICDC-Glioma"}, {"Collection": "ICDC-COTC007B"}]


def _responses(overrides=None):
    responses = {
        BENTO_KEY: MockResponse(json_data=STUDIES_PAYLOAD),
        (IDC_URL, tuple()): MockResponse(json_data=IDC_PAYLOAD),
        (TCIA_NAMES_URL, tuple()): MockResponse(json_data=TCIA_NAMES_PAYLOAD),
        _series_key("ICDC-Glioma"): MockResponse(
            json_data=[
                {"ImageCount": "10", "PatientID": "p1", "Modality": "MR", "BodyPartExamined": "HEAD"},
                {"ImageCount": "5", "PatientID": "p2", "Modality": "MR", "BodyPartExamined": "HEAD"},
            ]
        ),
        _series_key("ICDC-COTC007B"): MockResponse(
            json_data=[
                {"ImageCount": "7", "PatientID": "c1", "Modality": "CT", "BodyPartExamined": "CHEST"},
            ]
        ),
    }
    responses.update(overrides or {})
    return responses


def _links(mapping: StudyMapping):
    return [(link.repository, link.url) for link in mapping.links]


class MapExternalDataTest(unittest.TestCase):
    def test_maps_all_sources(self):
        result = map_external_data_to_studies(SETTINGS, session=MockSession(_responses()))

        self.assertEqual([mapping.study_designation for mapping in result], ["GLIOMA01", "COTC007B"])
        glioma, cotc = result
        self.assertEqual(
            _links(glioma),
            [
                ("IDC", "https://portal.idc.example.org/collections/icdc_glioma"),
                ("TCIA", "https://tcia.example.org/collection/ICDC-Glioma"),
            ],
        )
        self.assertEqual(glioma.links[1].metadata.aggregate_image_count, 15 + 84)
        self.assertEqual(glioma.links[1].metadata.aggregate_patient_id, 2)
        self.assertEqual(cotc.links[1].metadata.aggregate_modality, ["CT"])

    def test_idc_outage_still_maps_tcia_collections(self):
        session = MockSession(_responses({(IDC_URL, tuple()): requests.ConnectionError("idc down")}))

        with self.assertLogs("crdc_links", level="ERROR"):
            result = map_external_data_to_studies(SETTINGS, session=session)

        self.assertEqual(
            [_links(mapping) for mapping in result],
            [
                [("TCIA", "https://tcia.example.org/collection/ICDC-Glioma")],
                [("TCIA", "https://tcia.example.org/collection/ICDC-COTC007B")],
            ],
        )

    def test_backend_failure_is_raised(self):
        session = MockSession(_responses({BENTO_KEY: requests.ConnectionError("bento down")}))

        with self.assertLogs("crdc_links", level="ERROR"):
            with self.assertRaises(BackendNotConnectedError):
                map_external_data_to_studies(SETTINGS, session=session)

        self.assertEqual(len(session.calls), 1)

    def test_unexpected_failure_is_returned(self):
        bad_series = MockResponse(json_data=[{"ImageCount": "n/a", "PatientID": "p1", "Modality": "MR"}])
        session = MockSession(_responses({_series_key("ICDC-Glioma"): bad_series}))

        with self.assertLogs(collection_mapping.logger, level="ERROR"):
            result = map_external_data_to_studies(SETTINGS, session=session)

        self.assertIsInstance(result, ValueError)

    def test_missing_image_count_is_returned_as_error(self):
        bad_series = MockResponse(json_data=[{"PatientID": "p1", "Modality": "MR"}])
        session = MockSession(_responses({_series_key("ICDC-Glioma"): bad_series}))

        with self.assertLogs(collection_mapping.logger, level="ERROR"):
            result = map_external_data_to_studies(SETTINGS, session=session)

        self.assertIsInstance(result, ValueError)
        self.assertIn("ICDC-Glioma", str(result))

    def test_study_code_filters_mappings(self):
        result = map_external_data_to_studies(
            SETTINGS,
            session=MockSession(_responses()),
            study_code="COTC007B",
        )

        self.assertEqual([mapping.study_designation for mapping in result], ["COTC007B"])

    def test_unknown_study_code_raises(self):
        session = MockSession(_responses())

        with self.assertRaises(StudyCodeNotFoundError):
            map_external_data_to_studies(SETTINGS, session=session, study_code="NOPE01")

        self.assertEqual(len(session.calls), 1)

    def test_parallel_series_fetch_gives_same_mappings(self):
        sequential = map_external_data_to_studies(SETTINGS, session=MockSession(_responses()))
        pooled = map_external_data_to_studies(
            SETTINGS,
            session=MockSession(_responses()),
            max_workers=4,
        )

        self.assertEqual(
            [mapping.to_dict() for mapping in pooled],
            [mapping.to_dict() for mapping in sequential],
        )


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
