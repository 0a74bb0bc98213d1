from pathlib import Path

import pytest

from citesmith.core.document import Document, LineIndex, Position, Span


def test_span_rejects_inverted_ranges() -> None:
    with pytest.raises(ValueError):
        Span(5, 4)
    with pytest.raises(ValueError):
        Span(-1, 2)


def test_span_contains_includes_end() -> None:
    span = Span(3, 6)
    assert len(span) == 3
    assert span.contains(3)
    assert span.contains(6)
    assert not span.contains(7)
    assert span.slice("abcdefgh") == "def"


def test_line_index_positions() -> None:
    index = LineIndex("alpha\nbeta\n\ngamma")

    assert len(index) == 4
    assert index.line_number(0) == 0
    assert index.line_number(5) == 0
    assert index.line_number(6) == 1
    assert index.line_start(3) == 12
    assert index.line_end(1) == 10
    assert index.line_end(3) == 17
    assert index.position(13) == Position(offset=13, line=4, column=1)


def test_position_renders_line_and_column() -> None:
    assert str(Document("one\ntwo").position(5)) == "2:1"


def test_digest_tracks_contents() -> None:
    first = Document("cite:a")
    assert first.digest == Document("cite:a").digest
    assert first.digest != first.with_text("cite:b").digest


def test_with_text_keeps_path(tmp_path: Path) -> None:
    document = Document("old", path=tmp_path / "notes.org")
    updated = document.with_text("new")
    assert updated.path == document.path
    assert updated.text == "new"


def test_resolve_path_uses_document_directory(tmp_path: Path) -> None:
    document = Document("", path=tmp_path / "chapter" / "notes.org")
    (tmp_path / "chapter").mkdir()

    assert document.directory == tmp_path.resolve() / "chapter"
    assert document.resolve_path("refs.bib") == tmp_path.resolve() / "chapter" / "refs.bib"
    absolute = tmp_path / "elsewhere.bib"
    assert document.resolve_path(absolute) == absolute


def test_buffer_without_path_resolves_against_cwd(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    assert Document("").resolve_path("refs.bib") == Path.cwd() / "refs.bib"


def test_from_path_reads_utf8(tmp_path: Path) -> None:
    path = tmp_path / "notes.org"
    path.write_text("Résumé cite:a\n", encoding="utf-8")

    document = Document.from_path(path)

    assert document.text == "Résumé cite:a\n"
    assert document.path == path
