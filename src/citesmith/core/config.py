"""Configuration model for marker discovery, editing, and resolution.

CitesmithConfig

`default_cite_type` (`str`)
: Marker type used when a citation has to be synthesised from scratch. The
  value must be one of `citation_types`.

`bracketed_links` (`bool`)
: Wrap synthesised citations as `[[type:keys]]` instead of the bare
  `type:keys` form.

`default_bibliography` (`list[Path]`)
: Fallback bibliography files consulted when a document declares none and no
  locator finds any.

`citation_types` (`list[str]`)
: Citation command names recognised as citation markers.

`reference_types` (`list[str]`)
: Command names recognised as cross-reference markers.

`wildcard_key` (`str`)
: Reserved key meaning "every entry" (as in `nocite:*`). It is never reported
  as unresolved.

`context_indent` (`int`)
: Number of spaces prepended to each line of a label's context preview.

`idle_interval` (`float`)
: Delay in seconds between idle "context at point" checks.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
import yaml

from .exceptions import ConfigurationError


CONFIG_ENV_VAR = "CITESMITH_CONFIG"

DEFAULT_CITATION_TYPES: tuple[str, ...] = (
    "cite",
    "nocite",
    "citet",
    "citet*",
    "citep",
    "citep*",
    "citealt",
    "citealt*",
    "citealp",
    "citealp*",
    "citenum",
    "citetext",
    "citeauthor",
    "citeauthor*",
    "citeyear",
    "citeyearpar",
    "Citet",
    "Citep",
    "Citealt",
    "Citealp",
    "Citeauthor",
    "Cite",
    "cite*",
    "parencite",
    "Parencite",
    "parencite*",
    "footcite",
    "footcitetext",
    "textcite",
    "Textcite",
    "smartcite",
    "Smartcite",
    "supercite",
    "autocite",
    "Autocite",
    "autocite*",
    "Autocite*",
    "citetitle",
    "citetitle*",
    "citedate",
    "citedate*",
    "citeurl",
    "fullcite",
    "footfullcite",
    "notecite",
    "Notecite",
    "pnotecite",
    "Pnotecite",
    "fnotecite",
    "cites",
    "Cites",
    "parencites",
    "Parencites",
    "footcites",
    "footcitetexts",
    "smartcites",
    "Smartcites",
    "textcites",
    "Textcites",
    "supercites",
    "autocites",
    "Autocites",
    "bibentry",
)

DEFAULT_REFERENCE_TYPES: tuple[str, ...] = (
    "ref",
    "eqref",
    "pageref",
    "nameref",
    "autoref",
    "cref",
    "Cref",
)


class CitesmithConfig(BaseModel):
    """Settings shared by the citation editor, resolver, and validator."""

    model_config = ConfigDict(extra="forbid")

    default_cite_type: str = "cite"
    bracketed_links: bool = False
    default_bibliography: list[Path] = Field(default_factory=list)
    citation_types: list[str] = Field(default_factory=lambda: list(DEFAULT_CITATION_TYPES))
    reference_types: list[str] = Field(default_factory=lambda: list(DEFAULT_REFERENCE_TYPES))
    wildcard_key: str = "*"
    context_indent: int = Field(default=4, ge=0)
    idle_interval: float = Field(default=0.5, gt=0)

    @field_validator("default_bibliography")
    @classmethod
    def _expand_user(cls, value: list[Path]) -> list[Path]:
        return [path.expanduser() for path in value]

    @field_validator("citation_types", "reference_types")
    @classmethod
    def _reject_blank_types(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value]
        if not all(cleaned):
            raise ValueError("marker type names must not be blank")
        return cleaned

    @model_validator(mode="after")
    def _check_default_type(self) -> CitesmithConfig:
        """Ensure synthesised citations use a registered marker type."""
        if self.default_cite_type not in self.citation_types:
            raise ValueError(
                f"default_cite_type '{self.default_cite_type}' is not a registered citation type"
            )
        overlap = set(self.citation_types) & set(self.reference_types)
        if overlap:
            listed = ", ".join(sorted(overlap))
            raise ValueError(f"types registered as both citation and reference: {listed}")
        return self


def load_config(path: Path | str | None = None) -> CitesmithConfig:
    """Load configuration from a YAML file, the environment, or defaults."""
    if path is None:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        if not env_value:
            return CitesmithConfig()
        path = env_value

    config_path = Path(path).expanduser()
    try:
        payload: Any = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration '{config_path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in '{config_path}': {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigurationError(f"Configuration '{config_path}' must contain a mapping.")

    try:
        return CitesmithConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in '{config_path}': {exc}") from exc


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CITATION_TYPES",
    "DEFAULT_REFERENCE_TYPES",
    "CitesmithConfig",
    "load_config",
]
