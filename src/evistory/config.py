"""Configuration for evistory.

Holds the sentinel value, band thresholds, wildcard region, and legend
palette shared by the grid and series pipelines. A module-level default
is used unless a ``Config`` is passed explicitly.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from evistory.analysis.grid import validate_thresholds
from evistory.exceptions import ClassificationError, ConfigurationError

logger = logging.getLogger("evistory")

_CONFIG_ENV_VAR = "EVISTORY_CONFIG"
_DEFAULT_CONFIG_PATH = Path("~/.evistory/config.json")

# ── Band threshold presets ─────────────────────────────────────────
# Absolute EVI units (end - start) and normalized percentage change.
THRESHOLD_PRESETS: dict[str, tuple[float, ...]] = {
    "absolute": (-0.2, -0.05, 0.05, 0.2),
    "percent": (-20.0, -5.0, 5.0, 20.0),
}

# Large decrease → large increase.
_DEFAULT_BAND_COLORS: tuple[str, ...] = (
    "#a6611a",
    "#dfc27d",
    "#f5f5f5",
    "#80cdc1",
    "#018571",
)
_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class Config(BaseModel):
    """Story configuration model.

    Immutable pydantic model. Pass one explicitly to the ``evistory.api``
    functions, or rely on the module default managed by ``configure()``.

    Args:
        sentinel_value: Reserved pixel value meaning "outside region of
            interest".
        threshold_preset: Name of a built-in threshold list
            (``"absolute"`` or ``"percent"``).
        thresholds: Explicit ascending boundaries; overrides the preset.
        wildcard_region: Region name that disables region filtering.
        band_colors: Hex colours, one per band, lowest band first.
        missing_color: Hex colour for the missing-data category.

    Example:
        >>> cfg = Config(threshold_preset="percent")
        >>> cfg.resolved_thresholds()
        (-20.0, -5.0, 5.0, 20.0)
    """

    model_config = ConfigDict(frozen=True, validate_default=True, extra="forbid")

    sentinel_value: float = 133.0
    threshold_preset: str = "absolute"
    thresholds: tuple[float, ...] | None = None
    wildcard_region: str = "US"
    band_colors: tuple[str, ...] = _DEFAULT_BAND_COLORS
    missing_color: str = "#d9d9d9"

    @field_validator("threshold_preset")
    @classmethod
    def _validate_preset(cls, v: str) -> str:
        """Ensure the preset name is known."""
        if v not in THRESHOLD_PRESETS:
            known = ", ".join(sorted(THRESHOLD_PRESETS))
            msg = f"threshold_preset must be one of: {known}"
            raise ValueError(msg)
        return v

    @field_validator("thresholds")
    @classmethod
    def _validate_thresholds(
        cls,
        v: tuple[float, ...] | None,
    ) -> tuple[float, ...] | None:
        if v is None:
            return None
        try:
            return validate_thresholds(v)
        except ClassificationError as exc:
            raise ValueError(exc.cause) from None

    @field_validator("band_colors")
    @classmethod
    def _validate_band_colors(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for color in v:
            if not _HEX_COLOR.match(color):
                msg = f"band color {color!r} must match '#RRGGBB'"
                raise ValueError(msg)
        return v

    @field_validator("missing_color")
    @classmethod
    def _validate_missing_color(cls, v: str) -> str:
        if not _HEX_COLOR.match(v):
            msg = "missing_color must match '#RRGGBB'"
            raise ValueError(msg)
        return v

    @field_validator("wildcard_region")
    @classmethod
    def _validate_wildcard(cls, v: str) -> str:
        if not v:
            msg = "wildcard_region must not be empty"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _check_palette_length(self) -> Config:
        """Require one band colour per band of the resolved thresholds."""
        band_total = len(self.resolved_thresholds()) + 1
        if len(self.band_colors) != band_total:
            msg = (
                f"band_colors has {len(self.band_colors)} colour(s) but the "
                f"thresholds define {band_total} bands"
            )
            raise ValueError(msg)
        return self

    def resolved_thresholds(self) -> tuple[float, ...]:
        """Return the explicit thresholds, or the preset list."""
        if self.thresholds is not None:
            return self.thresholds
        return THRESHOLD_PRESETS[self.threshold_preset]


_default_config = Config()


def configure(**kwargs: Any) -> None:
    """Set module-level default configuration.

    Creates a new ``Config`` from the current defaults merged with
    the provided keyword arguments.

    Raises:
        ValidationError: If a provided value fails pydantic validation.

    Example:
        >>> configure(threshold_preset="percent", wildcard_region="ALL")
    """
    global _default_config  # noqa: PLW0603
    current = _default_config.model_dump()
    current.update(kwargs)
    _default_config = Config(**current)


def get_default_config() -> Config:
    """Return the current module-level default configuration."""
    return _default_config


def resolve_config_path(explicit: Path | str | None = None) -> Path | None:
    """Resolve the config file path.

    Resolution order:
        1. *explicit* argument (highest priority)
        2. ``EVISTORY_CONFIG`` environment variable
        3. Default ``~/.evistory/config.json``

    Returns:
        Resolved ``Path``, or ``None`` if no file exists at the
        chosen location.
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
    elif os.environ.get(_CONFIG_ENV_VAR):
        path = Path(os.environ[_CONFIG_ENV_VAR]).expanduser()
    else:
        path = _DEFAULT_CONFIG_PATH.expanduser()

    if not path.exists():
        logger.debug("No config file at %s", path)
        return None
    return path


def load_config(path: Path | str) -> Config:
    """Load a JSON config file into a ``Config``.

    Args:
        path: Absolute or ``~``-expanded path to the JSON file.

    Returns:
        Validated ``Config``.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not a
            JSON object, or fails validation.
    """
    resolved = Path(path).expanduser()
    try:
        text = resolved.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            what="Cannot read config file",
            cause=f"File not found: {resolved}",
            fix=(
                f"Create {resolved}, or set the {_CONFIG_ENV_VAR} "
                "environment variable"
            ),
        ) from None
    except PermissionError:
        raise ConfigurationError(
            what="Cannot read config file",
            cause=f"Permission denied: {resolved}",
            fix=f"Check file permissions on {resolved}",
        ) from None

    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            what="Invalid config file format",
            cause=f"JSON parse error in {resolved}: {exc}",
            fix='Ensure the file contains a JSON object, e.g. {"sentinel_value": 133}',
        ) from None

    if not isinstance(parsed, dict):
        raise ConfigurationError(
            what="Invalid config file format",
            cause=f"Expected a JSON object in {resolved}, got {type(parsed).__name__}",
            fix='Ensure the file contains a JSON object, e.g. {"sentinel_value": 133}',
        )

    try:
        config = Config(**parsed)
    except ValidationError as exc:
        raise ConfigurationError(
            what="Invalid config values",
            cause=f"{resolved}: {exc.error_count()} validation error(s)",
            fix=str(exc),
        ) from None

    logger.info("Loaded config from %s", resolved)
    return config
