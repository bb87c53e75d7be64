from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ReplayContext:
    """
    Immutable runtime context for one replay run.

    One ReplayContext == one input file == one changes output file.
    """

    # Identity
    run_id: str
    started_at: datetime

    # Paths
    blocks_path: Path
    changes_path: Path
    events_path: Path | None = None
    config_path: Path | None = None

    def __post_init__(self) -> None:
        """
        Normalize paths, which may arrive as strings when the context is
        rebuilt from JSON.
        """
        object.__setattr__(self, "blocks_path", Path(self.blocks_path))
        object.__setattr__(self, "changes_path", Path(self.changes_path))
        if self.events_path is not None:
            object.__setattr__(self, "events_path", Path(self.events_path))
        if self.config_path is not None:
            object.__setattr__(self, "config_path", Path(self.config_path))

    @property
    def metrics_labels(self) -> dict[str, str]:
        return {"run_id": self.run_id, "blocks_file": self.blocks_path.name}
