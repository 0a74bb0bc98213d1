"""Nox sessions for citesmith."""

import nox


PYPROJECT = nox.project.load_toml("pyproject.toml")
# Drive the matrix from pyproject metadata so versions stay in sync.
PYTHON_VERSIONS = nox.project.python_versions(PYPROJECT, max_version="3.14")
nox.options.default_venv_backend = "uv"


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run pytest across all supported Python versions."""
    session.install(".[test]")
    session.run("pytest", *session.posargs)


@nox.session(python="3.14")
def coverage(session: nox.Session) -> None:
    """Run tests with coverage reporting once (py3.14)."""
    session.install(".[test]")
    session.run(
        "pytest",
        "--cov=citesmith",
        "--cov-report=term-missing",
        *session.posargs,
    )
