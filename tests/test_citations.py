from pathlib import Path
import shutil

import pytest

from citesmith.core.bibliography import BibliographyResolver
from citesmith.core.citations import CitationEditor, Edit, key_index_at
from citesmith.core.config import CitesmithConfig
from citesmith.core.document import Document, Span
from citesmith.core.exceptions import KeyNotInCitationError


FIXTURE_BIB_DIR = Path(__file__).resolve().parent / "fixtures" / "bib"


@pytest.fixture
def editor() -> CitationEditor:
    return CitationEditor()


def _apply(text: str, edit: Edit) -> str:
    return edit.apply(text)


def test_edit_noop_leaves_text_untouched() -> None:
    edit = Edit.noop(3)
    assert not edit.changed
    assert edit.apply("cite:a") == "cite:a"
    assert edit.point == 3


def test_key_index_uses_comma_boundaries(editor: CitationEditor) -> None:
    text = "[[cite:a, b][see::p. 4]]"
    link = editor.link_at(text, 0)
    assert link is not None

    assert key_index_at(text, link, 7) == 0
    assert key_index_at(text, link, 8) == 0
    assert key_index_at(text, link, 9) == 1
    assert key_index_at(text, link, 18) == 1


def test_key_at_point(editor: CitationEditor) -> None:
    located = editor.key_at_point("cite:a,b,c", 7)
    assert located is not None
    assert located.key == "b"
    assert located.span == Span(7, 8)
    assert editor.key_at_point("no marker", 2) is None


def test_insert_after_key_under_point(editor: CitationEditor) -> None:
    text = "cite:a,b,c"
    edit = editor.insert_keys(text, 5, ["x"])
    assert _apply(text, edit) == "cite:a,x,b,c"
    assert edit.point == 8


def test_insert_before_first_key_prepends(editor: CitationEditor) -> None:
    text = "cite:a,b,c"
    edit = editor.insert_keys(text, 2, ["x"])
    assert _apply(text, edit) == "cite:x,a,b,c"
    assert edit.point == 6


def test_insert_several_keys_lands_after_the_last(editor: CitationEditor) -> None:
    text = "cite:a,b"
    edit = editor.insert_keys(text, 8, ["x, y"])
    assert _apply(text, edit) == "cite:a,b,x,y"
    assert edit.point == 12


def test_insert_keeps_description(editor: CitationEditor) -> None:
    text = "[[cite:a][see::p. 4]]"
    edit = editor.insert_keys(text, len(text), ["x"])
    assert _apply(text, edit) == "[[cite:a,x][see::p. 4]]"
    assert edit.point == 10


def test_insert_after_bare_prefix(editor: CitationEditor) -> None:
    text = "See cite:"
    edit = editor.insert_keys(text, 9, ["a", "b"])
    assert _apply(text, edit) == "See cite:a,b"
    assert edit.point == 12


def test_insert_outside_marker_creates_one(editor: CitationEditor) -> None:
    text = "Hello world"

    after_word = editor.insert_keys(text, 5, ["x"])
    assert _apply(text, after_word) == "Hello cite:x world"
    assert after_word.point == 12

    before_word = editor.insert_keys(text, 6, ["x"])
    assert _apply(text, before_word) == "Hello cite:x world"
    assert before_word.point == 12


def test_insert_creates_bracketed_marker_when_configured() -> None:
    editor = CitationEditor(CitesmithConfig(bracketed_links=True, default_cite_type="citep"))
    text = "()"
    edit = editor.insert_keys(text, 1, ["x"])
    assert _apply(text, edit) == "([[citep:x]])"
    assert edit.point == 12


def test_insert_nothing_is_a_noop(editor: CitationEditor) -> None:
    assert not editor.insert_keys("cite:a", 5, [" ", ""]).changed


def test_delete_key_under_point(editor: CitationEditor) -> None:
    text = "cite:a,b,c"

    middle = editor.delete_key(text, 7)
    assert _apply(text, middle) == "cite:a,c"
    assert middle.point == 7

    last = editor.delete_key(text, 9)
    assert _apply(text, last) == "cite:a,b"
    assert last.point == 8


def test_insert_then_delete_restores_keys(editor: CitationEditor) -> None:
    text = "[[cite:a,b][see::p. 4]]"
    inserted = editor.insert_keys(text, 8, ["x"])
    updated = _apply(text, inserted)

    restored = editor.delete_key(updated, inserted.point)

    assert _apply(updated, restored) == text


def test_delete_named_key(editor: CitationEditor) -> None:
    text = "cite:a,b,c"
    edit = editor.delete_key(text, 5, "c")
    assert _apply(text, edit) == "cite:a,b"


def test_delete_unknown_key_raises(editor: CitationEditor) -> None:
    with pytest.raises(KeyNotInCitationError):
        editor.delete_key("cite:a,b", 5, "z")


def test_delete_last_key_removes_marker(editor: CitationEditor) -> None:
    text = "See cite:a and more"
    edit = editor.delete_key(text, 9)
    assert _apply(text, edit) == "See and more"
    assert edit.point == 4


def test_delete_last_key_keeps_a_separating_space(editor: CitationEditor) -> None:
    text = "Text.cite:a more"
    assert _apply(text, editor.delete_key(text, 10)) == "Text. more"


def test_delete_last_key_inside_parentheses(editor: CitationEditor) -> None:
    text = "(cite:a) x"
    edit = editor.delete_key(text, 6)
    assert _apply(text, edit) == "() x"
    assert edit.point == 1


def test_delete_without_marker_is_a_noop(editor: CitationEditor) -> None:
    edit = editor.delete_key("plain text", 3)
    assert not edit.changed
    assert edit.point == 3


def test_replace_key_with_several(editor: CitationEditor) -> None:
    text = "cite:a,b,c"
    edit = editor.replace_key(text, 7, "b", ["x", "y"])
    assert _apply(text, edit) == "cite:a,x,y,c"
    assert edit.point == 10


def test_replace_key_with_nothing_deletes(editor: CitationEditor) -> None:
    text = "cite:a,b,c"
    assert _apply(text, editor.replace_key(text, 7, "b", [])) == "cite:a,c"


def test_swap_key(editor: CitationEditor) -> None:
    text = "cite:a,b,c"

    right = editor.swap_key(text, 5, 1)
    assert _apply(text, right) == "cite:b,a,c"
    assert right.point == 7

    left = editor.swap_key(text, 9, -1)
    assert _apply(text, left) == "cite:a,c,b"
    assert left.point == 7


def test_swap_past_the_edge_is_a_noop(editor: CitationEditor) -> None:
    edit = editor.swap_key("cite:a,b,c", 5, -1)
    assert not edit.changed
    assert edit.point == 5


def test_next_and_previous_key(editor: CitationEditor) -> None:
    text = "cite:a,b and cite:c"

    assert editor.next_key(text, 5) == 7
    assert editor.next_key(text, 7) == 18
    assert editor.next_key(text, 18) == 18

    assert editor.previous_key(text, 7) == 5
    assert editor.previous_key(text, 18) == 5
    assert editor.previous_key(text, 10) == 5
    assert editor.previous_key(text, 5) == 5


def test_sort_by_year(tmp_path: Path) -> None:
    shutil.copy(FIXTURE_BIB_DIR / "primary.bib", tmp_path / "primary.bib")
    prefix = "bibliography:primary.bib\n"
    text = f"{prefix}cite:smith2020,nodate,doe2019,lee2021"
    document = Document(text, path=tmp_path / "notes.org")
    editor = CitationEditor()

    edit = editor.sort_by_year(document, len(prefix) + 6)

    assert _apply(text, edit) == f"{prefix}cite:nodate,doe2019,smith2020,lee2021"
    assert edit.point == len(prefix) + 5

    again = document.with_text(_apply(text, edit))
    assert not editor.sort_by_year(again, len(prefix) + 6).changed


def test_sort_by_year_uses_given_resolution(tmp_path: Path) -> None:
    shutil.copy(FIXTURE_BIB_DIR / "secondary.bib", tmp_path / "refs.bib")
    document = Document("cite:smith2020,roe2018", path=tmp_path / "notes.org")
    resolver = BibliographyResolver(locator=None)
    editor = CitationEditor(resolver=resolver)
    resolution = resolver.resolve(Document("bibliography:refs.bib", path=document.path))

    edit = editor.sort_by_year(document, 5, resolution)

    assert _apply(document.text, edit) == "cite:roe2018,smith2020"


def test_sort_by_year_accepts_plain_text() -> None:
    resolver = BibliographyResolver(locator=None)
    editor = CitationEditor(resolver=resolver)
    resolution = resolver.resolve(Document.from_path(FIXTURE_BIB_DIR / "primary.bib"))

    edit = editor.sort_by_year("cite:lee2021,doe2019", 5, resolution)

    assert _apply("cite:lee2021,doe2019", edit) == "cite:doe2019,lee2021"
    assert edit.point == 5
