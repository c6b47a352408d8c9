"""Flat JSON snapshot of the latest build."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from buildpulse.models import PulseSnapshot

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """Snapshot storage error."""

    pass


class SnapshotStore:
    """Read and write the build snapshot file.

    Example:
        >>> store = SnapshotStore("./data/build-output.json")
        >>> store.save(snapshot)
        >>> store.load().summary.total_projects
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize snapshot store.

        Args:
            path: Snapshot JSON file.
        """
        self.path = Path(path).expanduser()

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def save(self, snapshot: PulseSnapshot) -> None:
        """Write the snapshot, replacing any previous one."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(snapshot.model_dump_json(indent=2))
        logger.info("Build data saved to %s", self.path)

    def load_or_raise(self) -> PulseSnapshot:
        """Read the snapshot.

        Raises:
            SnapshotError: If the file is missing or invalid.
        """
        if not self.path.exists():
            raise SnapshotError(f"No build data at {self.path}. Run 'buildpulse build' first.")

        try:
            with open(self.path, encoding="utf-8") as f:
                return PulseSnapshot.model_validate(json.load(f))
        except (json.JSONDecodeError, ValidationError) as e:
            raise SnapshotError(f"Invalid build data in {self.path}: {e}") from e

    def load(self) -> PulseSnapshot | None:
        """Read the snapshot, or None if it is missing or invalid."""
        try:
            return self.load_or_raise()
        except SnapshotError as e:
            logger.warning("%s", e)
            return None
