from pathlib import Path
import shutil
import textwrap

from typer.testing import CliRunner

from citesmith.ui.cli import app


FIXTURE_BIB_DIR = Path(__file__).resolve().parent / "fixtures" / "bib"


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(textwrap.dedent(content).strip() + "\n", encoding="utf-8")
    return path


def _with_bibliography(tmp_path: Path, body: str) -> Path:
    shutil.copy(FIXTURE_BIB_DIR / "primary.bib", tmp_path / "primary.bib")
    return _write(tmp_path, "notes.org", f"bibliography:primary.bib\n{body}")


def test_labels_command(tmp_path: Path) -> None:
    document = _write(
        tmp_path,
        "notes.org",
        """
        #+name: fig1
        [[file:figure.png]]
        <<intro>>
        """,
    )

    result = CliRunner().invoke(app, ["labels", str(document)])

    assert result.exit_code == 0, result.output
    assert "Labels" in result.stdout
    assert "fig1" in result.stdout
    assert "intro" in result.stdout


def test_labels_command_without_labels(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "plain text")

    result = CliRunner().invoke(app, ["labels", str(document)])

    assert result.exit_code == 0
    assert "No labels found." in result.stdout


def test_sources_command(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019")

    result = CliRunner().invoke(app, ["sources", str(document)])

    assert result.exit_code == 0, result.output
    assert "Bibliography Files (declared)" in result.stdout
    assert "Total" in result.stdout
    assert "4" in result.stdout


def test_find_key_prints_defining_file(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019")

    result = CliRunner().invoke(app, ["find-key", "doe2019", str(document)])

    assert result.exit_code == 0, result.output
    assert str(tmp_path.resolve() / "primary.bib") in result.stdout
    assert "Labels and Anchors" in result.stdout


def test_find_key_reports_unknown_keys(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019")

    result = CliRunner().invoke(app, ["find-key", "nobody1900", str(document)])

    assert result.exit_code == 1
    assert "was not found" in result.stdout


def test_check_clean_document(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019")

    result = CliRunner().invoke(app, ["check", "--strict", str(document)])

    assert result.exit_code == 0, result.output
    assert "No problems found." in result.stdout


def test_check_reports_problems(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:ghost2000 and ref:nowhere")

    lenient = CliRunner().invoke(app, ["check", str(document)])
    strict = CliRunner().invoke(app, ["check", "--strict", str(document)])

    assert lenient.exit_code == 0, lenient.output
    assert "Unresolved citation (1)" in lenient.stdout
    assert "ghost2000" in lenient.stdout
    assert "Unresolved reference (1)" in lenient.stdout
    assert strict.exit_code == 1


def test_context_command(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019 and ref:ghost")
    text = document.read_text(encoding="utf-8")

    cited = CliRunner().invoke(
        app, ["context", str(document), "--offset", str(text.index("doe2019"))]
    )
    referenced = CliRunner().invoke(
        app, ["context", str(document), "--offset", str(text.index("ghost"))]
    )
    nothing = CliRunner().invoke(app, ["context", str(document), "--offset", "0"])

    assert cited.exit_code == 0, cited.output
    assert "Labels and Anchors" in cited.stdout
    assert "No label named 'ghost'." in referenced.stdout
    assert "No citation or reference" in nothing.stdout


def test_insert_keys_prints_result(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "cite:a,b")

    result = CliRunner().invoke(app, ["insert-keys", str(document), "x", "y", "--offset", "5"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "cite:a,x,y,b\n"
    assert "point: 10" in result.stderr
    assert document.read_text(encoding="utf-8") == "cite:a,b\n"


def test_insert_keys_writes_in_place(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "Hello world")

    result = CliRunner().invoke(
        app, ["insert-keys", str(document), "knuth1984", "--offset", "5", "--write"]
    )

    assert result.exit_code == 0, result.output
    assert result.stdout == ""
    assert document.read_text(encoding="utf-8") == "Hello cite:knuth1984 world\n"


def test_delete_key_command(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "See cite:a,b here")

    result = CliRunner().invoke(app, ["delete-key", str(document), "--offset", "9"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "See cite:b here\n"


def test_delete_key_rejects_foreign_key(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "cite:a,b")

    result = CliRunner().invoke(
        app, ["delete-key", str(document), "--offset", "5", "--key", "zzz"]
    )

    assert result.exit_code == 1
    assert "not part of the citation" in result.stderr


def test_swap_key_command(tmp_path: Path) -> None:
    document = _write(tmp_path, "notes.org", "cite:a,b,c")

    result = CliRunner().invoke(
        app, ["swap-key", str(document), "--offset", "9", "--direction", "left"]
    )

    assert result.exit_code == 0, result.output
    assert result.stdout == "cite:a,c,b\n"
    assert "point: 7" in result.stderr


def test_sort_keys_command(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:lee2021,smith2020,doe2019")
    offset = len("bibliography:primary.bib\n") + 5

    result = CliRunner().invoke(app, ["sort-keys", str(document), "--offset", str(offset), "-w"])

    assert result.exit_code == 0, result.output
    assert document.read_text(encoding="utf-8") == (
        "bibliography:primary.bib\ncite:doe2019,smith2020,lee2021\n"
    )


def test_config_option_changes_behaviour(tmp_path: Path) -> None:
    config = _write(tmp_path, "citesmith.yml", "bracketed_links: true\ndefault_cite_type: citep")
    document = _write(tmp_path, "notes.org", "Hello world")

    result = CliRunner().invoke(
        app, ["--config", str(config), "insert-keys", str(document), "x", "--offset", "6"]
    )

    assert result.exit_code == 0, result.output
    assert result.stdout == "Hello [[citep:x]] world\n"


def test_invalid_config_exits_with_usage_error(tmp_path: Path) -> None:
    config = _write(tmp_path, "citesmith.yml", "unknown_option: true")
    document = _write(tmp_path, "notes.org", "text")

    result = CliRunner().invoke(app, ["--config", str(config), "labels", str(document)])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.stderr


def test_find_key_ignores_key_case(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:smith2020")

    result = CliRunner().invoke(app, ["find-key", "SMITH2020", str(document)])

    assert result.exit_code == 0, result.output
    assert str(tmp_path.resolve() / "primary.bib") in result.stdout
    assert "Resolving Citations" in result.stdout


def test_sources_has_no_refresh_option(tmp_path: Path) -> None:
    document = _with_bibliography(tmp_path, "cite:doe2019")

    result = CliRunner().invoke(app, ["sources", "--refresh", str(document)])

    assert result.exit_code == 2
