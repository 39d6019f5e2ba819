"""Clases base para fuentes de sesiones."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from activity_chart.model import Session


@dataclass(frozen=True)
class SourcePaths:
    """Container for the exported sessions file."""

    path: Path


class SessionSource(ABC):
    """Abstract session source."""

    def __init__(self, paths: SourcePaths) -> None:
        """Create a session source.

        Args:
            paths: Source paths configuration.
        """
        self._paths = paths

    def validate(self) -> None:
        """Validate that the export file exists.

        Raises:
            FileNotFoundError: If the file is missing.
        """
        if not self._paths.path.is_file():
            raise FileNotFoundError(str(self._paths.path))

    @abstractmethod
    def load_sessions(self) -> list[Session]:
        """Parse the export into sessions ordered by timestamp."""
