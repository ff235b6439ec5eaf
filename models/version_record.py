from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass
class VersionRecord:
    """A stored backup of a page config (``v<number>.json``)."""

    number: int
    filename: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"number": self.number, "filename": self.filename, "timestamp": self.timestamp.isoformat()}
