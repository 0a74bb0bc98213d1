from pathlib import Path
import shutil
import textwrap

import pytest

from citesmith.core.bibliography import BibliographyResolver
from citesmith.core.config import CitesmithConfig
from citesmith.core.document import Document, Span
from citesmith.core.validation import ConsistencyValidator, FindingKind


FIXTURE_BIB_DIR = Path(__file__).resolve().parent / "fixtures" / "bib"


@pytest.fixture
def validator() -> ConsistencyValidator:
    return ConsistencyValidator(resolver=BibliographyResolver(locator=None))


def _document(tmp_path: Path, text: str) -> Document:
    return Document(textwrap.dedent(text).lstrip(), path=tmp_path / "notes.org")


def test_full_report(tmp_path: Path, validator: ConsistencyValidator) -> None:
    shutil.copy(FIXTURE_BIB_DIR / "primary.bib", tmp_path / "primary.bib")
    (tmp_path / "exists.txt").write_text("data\n", encoding="utf-8")
    document = _document(
        tmp_path,
        """
        bibliography:primary.bib
        #+name: fig1
        See cite:smith2020,missing2000 and ref:fig1, ref:nope.
        nocite:*
        file:exists.txt file:absent.txt
        #+name: dup
        <<dup>>
        """,
    )

    report = validator.validate(document)

    assert [finding.subject for finding in report.unresolved_citations] == ["missing2000"]
    citation = report.unresolved_citations[0]
    assert citation.detail == "cite:missing2000"
    assert citation.position.line == 3
    assert citation.position.column == 19
    assert citation.span.slice(document.text) == "missing2000"

    assert [finding.subject for finding in report.unresolved_references] == ["nope"]
    assert [finding.subject for finding in report.duplicate_labels] == ["dup", "dup"]
    assert report.duplicate_labels[0].detail == "name (2 definitions)"
    assert report.duplicate_labels[1].detail == "target (2 definitions)"
    assert [finding.subject for finding in report.missing_files] == ["absent.txt"]
    assert report.missing_bibliographies == []
    assert len(report) == 5
    assert not report.clean


def test_citations_without_sources_are_unresolved(validator: ConsistencyValidator) -> None:
    document = Document("cite:unknownkey")

    findings = validator.unresolved_citations(document)

    assert len(findings) == 1
    assert findings[0].span == Span(5, 15)
    assert str(findings[0].position) == "1:5"


def test_wildcard_key_is_never_reported(validator: ConsistencyValidator) -> None:
    assert validator.unresolved_citations(Document("nocite:*")) == []


def test_custom_wildcard_key() -> None:
    validator = ConsistencyValidator(
        CitesmithConfig(wildcard_key="all"), resolver=BibliographyResolver(locator=None)
    )
    assert validator.unresolved_citations(Document("nocite:all")) == []


def test_every_duplicate_definition_is_reported(validator: ConsistencyValidator) -> None:
    document = Document("#+name: fig1\n#+name: fig1\n\\label{fig1}\n")

    findings = validator.duplicate_labels(document)

    assert len(findings) == 3
    assert [finding.position.line for finding in findings] == [1, 2, 3]


def test_missing_bibliographies(tmp_path: Path, validator: ConsistencyValidator) -> None:
    document = _document(
        tmp_path,
        r"""
        \addbibresource{lost.bib}
        bibliography:gone.bib
        cite:smith2020
        """,
    )

    report = validator.validate(document)

    assert [finding.subject for finding in report.missing_bibliographies] == ["lost.bib", "gone.bib"]
    assert report.missing_bibliographies[0].detail == "\\addbibresource"
    assert [finding.subject for finding in report.unresolved_citations] == ["smith2020"]


def test_clean_document(tmp_path: Path, validator: ConsistencyValidator) -> None:
    shutil.copy(FIXTURE_BIB_DIR / "primary.bib", tmp_path / "primary.bib")
    document = _document(
        tmp_path,
        """
        bibliography:primary.bib
        <<intro>>
        See cite:doe2019 and ref:intro.
        """,
    )

    report = validator.validate(document)

    assert report.clean
    assert len(report) == 0
    assert all(not findings for _, findings in report.sections())


def test_finding_kind_titles() -> None:
    assert FindingKind.UNRESOLVED_CITATION.title == "Unresolved citation"
    assert FindingKind.MISSING_BIBLIOGRAPHY.title == "Missing bibliography"


def test_file_link_with_spaces_is_found(tmp_path: Path, validator: ConsistencyValidator) -> None:
    (tmp_path / "my figure.png").write_bytes(b"")
    document = _document(tmp_path, "See [[file:my figure.png]] and [[file:no such.png]].\n")

    report = validator.validate(document)

    assert [finding.subject for finding in report.missing_files] == ["no such.png"]


def test_repeated_bibliography_key_does_not_hide_other_entries(
    tmp_path: Path, validator: ConsistencyValidator
) -> None:
    (tmp_path / "refs.bib").write_text(
        "@book{smith2020, title = {A}, year = {2020}}\n"
        "@book{doe2019, title = {B}, year = {2019}}\n"
        "@book{doe2019, title = {C}, year = {2019}}\n",
        encoding="utf-8",
    )
    document = _document(tmp_path, "bibliography:refs.bib\ncite:smith2020,doe2019\n")

    report = validator.validate(document)

    assert report.unresolved_citations == []
