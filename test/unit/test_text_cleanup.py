from __future__ import annotations

import pytest

from crdc_links.utils.corrections import STUDY_CORRECTIONS, correction_for
from crdc_links.utils.text_cleanup import html_to_text, normalize_description


def test_html_to_text_separates_paragraphs() -> None:
    assert html_to_text("<p>Hello <b>world</b></p><p>Second</p>") == "Hello world\n\nSecond"


def test_html_to_text_collapses_source_whitespace() -> None:
    raw = "<p>Canine\n   glioma\tcollection</p>"
    assert html_to_text(raw) == "Canine glioma collection"


def test_html_to_text_renders_links_breaks_lists_and_headings() -> None:
    assert html_to_text('<p>See <a href="https://x.org/a">the docs</a>.</p>') == "See the docs [https://x.org/a]."
    assert html_to_text("line one<br>line two") == "line one\nline two"
    assert html_to_text("<ul><li>a</li><li>b</li></ul>") == "* a\n* b"
    assert html_to_text("<h2>Summary</h2><p>x</p>") == "SUMMARY\n\nx"


def test_html_to_text_link_matching_its_text_is_not_repeated() -> None:
    raw = '<a href="https://x.org">https://x.org</a>'
    assert html_to_text(raw) == "https://x.org"


def test_html_to_text_empty_input() -> None:
    assert html_to_text("") == ""
    assert html_to_text(None) == ""


def test_normalize_description_without_correction_is_plain_conversion() -> None:
    raw = "<p>Canine  osteosarcoma   images <i>(CT)</i></p>"
    text = normalize_description(raw, "OSA01")

    assert text == html_to_text(raw)
    assert normalize_description(text, "OSA01") == text


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("<p>Canine osteosarcoma.</p><p>CT and MR images.</p>", "Canine osteosarcoma.\n\nCT and MR images."),
        ("<ul><li>a</li><li>b</li></ul>", "* a\n* b"),
        ("line one<br>line two", "line one\nline two"),
        (
            '<h2>Summary</h2><p>See <a href="https://x.org/a">the docs</a>.</p><ol><li>CT</li></ol>',
            "SUMMARY\n\nSee the docs [https://x.org/a].\n\n* CT",
        ),
    ],
)
def test_normalize_description_is_stable_on_its_own_output(raw: str, expected: str) -> None:
    once = normalize_description(raw, "OSA01")

    assert once == expected
    assert normalize_description(once, "OSA01") == expected


def test_html_to_text_plain_input_keeps_line_layout() -> None:
    assert html_to_text("  First block  \n\n\n\nSecond block\n") == "First block\n\nSecond block"


def test_normalize_description_cleans_glioma_description() -> None:
    raw = (
        "<p>The ICDC-Glioma collection contains "
        '<a href="https://example.org/ref">MR images</a> of canine glioma .</p>'
        "<p>Data from ICDC-Glioma</p>"
    )

    text = normalize_description(raw, "GLIOMA01")

    assert text == "The collection contains MR images of canine glioma. Data from ICDC-Glioma"


def test_glioma_cleanup_does_not_apply_to_other_studies() -> None:
    raw = "<p>Images [1] .</p><p>ICDC-Glioma</p>"
    assert normalize_description(raw, "GLIOMA02") == "Images [1] .\n\nICDC-Glioma"


def test_correction_table_lookup() -> None:
    assert correction_for("GLIOMA01") is STUDY_CORRECTIONS["GLIOMA01"]
    assert correction_for("OSA01") is None
    assert correction_for(None) is None
