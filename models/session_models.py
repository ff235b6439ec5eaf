"""Editing session domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

ROLES = ("user", "assistant")


def _now_iso() -> str:
	return datetime.now(timezone.utc).isoformat()


@dataclass
class ChatMessage:
	"""One turn of the page-drafting conversation."""

	role: str
	content: str
	timestamp: str = field(default_factory=_now_iso)

	def __post_init__(self) -> None:
		if self.role not in ROLES:
			raise ValueError(f"role must be one of {ROLES}, got {self.role!r}")

	def to_dict(self) -> Dict[str, str]:
		return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> "ChatMessage":
		return cls(
			role=data["role"],
			content=data.get("content", ""),
			timestamp=data.get("timestamp") or _now_iso(),
		)


@dataclass
class EditingSession:
	"""In-memory state for a page that is being edited.

	``draft_config`` is the full draft document as persisted: the page config
	plus ``sessionId``, ``startedAt`` and ``conversationHistory``.
	"""

	page_id: str
	session_id: str
	draft_config: Dict[str, Any]
	started_at: datetime

	@property
	def conversation_history(self) -> list:
		return self.draft_config.get("conversationHistory", [])
