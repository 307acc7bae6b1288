"""simwatch CLI subcommands."""

from __future__ import annotations

from typing import Any

from simwatch.config import WatchSettings


def apply_overrides(settings: WatchSettings, **overrides: Any) -> WatchSettings:
    """Return a copy of *settings* with every non-``None`` override applied."""
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update)
