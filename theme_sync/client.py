"""Client context handed to change callbacks."""

from __future__ import annotations

from dataclasses import dataclass

from theme_sync.config import Config


@dataclass
class ThemeClient:
    """Identifies the project a change belongs to.

    The watcher only reads :attr:`directory`; the rest is passed through
    untouched so an uploader can find its own settings.
    """

    directory: str
    environment: str = "development"
    config: Config | None = None

    @classmethod
    def from_config(cls, config: Config) -> ThemeClient:
        return cls(
            directory=config.directory,
            environment=config.environment,
            config=config,
        )
