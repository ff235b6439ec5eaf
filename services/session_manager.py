"""Per-page editing sessions layered on draft configuration files."""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Set
from uuid import uuid4

from dal.config_store import ConfigStore
from models.ai_models import AIReply, PageContext
from models.session_models import ChatMessage, EditingSession
from utils.errors import AlreadyEditingError, NoActiveSessionError

LOGGER = logging.getLogger(__name__)

IDLE_TIMEOUT_SECONDS = 24 * 60 * 60
CLEANUP_INTERVAL_SECONDS = 60 * 60
IDENTITY_FIELDS = ("id", "sessionId", "startedAt")


class SessionManager:
	"""Single-writer editing sessions, one per page.

	A session owns a draft copy of the page config. Updates and chat turns go
	to the draft only; ``confirm_changes`` promotes it to the canonical config
	and ``cancel_changes`` throws it away. Drafts live on disk so sessions can
	be restored after a restart, and drafts left untouched for longer than the
	idle timeout are swept by a background job.
	"""

	def __init__(
		self,
		config_store: ConfigStore,
		rate_limiter=None,
		ai_agent=None,
		idle_timeout_seconds: float = IDLE_TIMEOUT_SECONDS,
		clock: Callable[[], float] = time.time,
	) -> None:
		self.config_store = config_store
		self.rate_limiter = rate_limiter
		self.ai_agent = ai_agent
		self.idle_timeout_seconds = idle_timeout_seconds
		self._clock = clock
		self._sessions: Dict[str, EditingSession] = {}
		self._starting: Set[str] = set()
		self._cleanup_task: Optional[asyncio.Task] = None

	# -- lifecycle -------------------------------------------------------------

	async def start_editing(self, page_id: str) -> EditingSession:
		"""Open a session for ``page_id`` and write its draft.

		Raises:
			AlreadyEditingError: A session exists or is being opened for the page.
			PageNotFoundError: The page has no canonical config.
		"""
		# check and reserve with no await in between
		if page_id in self._sessions or page_id in self._starting:
			LOGGER.warning("Editing session already exists for %s", page_id)
			raise AlreadyEditingError(page_id)
		self._starting.add(page_id)

		try:
			page_config = await self.config_store.load_page_config(page_id)
			session_id = uuid4().hex
			started_at = datetime.now(timezone.utc)
			draft = {
				**page_config,
				"sessionId": session_id,
				"startedAt": started_at.isoformat(),
				"conversationHistory": [],
			}
			await self.config_store.save_draft_config(draft)
			session = EditingSession(
				page_id=page_id,
				session_id=session_id,
				draft_config=draft,
				started_at=started_at,
			)
			self._sessions[page_id] = session
		except Exception:
			LOGGER.exception("Failed to start editing session for %s", page_id)
			raise
		finally:
			self._starting.discard(page_id)

		LOGGER.info("Editing session started for %s (session %s)", page_id, session_id)
		return session

	async def update_draft(self, page_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
		"""Merge ``updates`` into the draft and persist it.

		The page id (stored under the draft's ``id`` key), session id and start
		time are always re-asserted from the live session, whatever ``updates``
		contains.
		"""
		session = self._require_session(page_id)
		current = session.draft_config
		merged = {**current, **dict(updates)}
		for name in IDENTITY_FIELDS:
			merged[name] = current[name]

		await self.config_store.save_draft_config(merged)
		session.draft_config = merged
		LOGGER.debug("Draft updated for %s (session %s)", page_id, session.session_id)
		return merged

	async def add_message(self, page_id: str, message: ChatMessage) -> Dict[str, Any]:
		"""Append one chat message to the draft's conversation history."""
		session = self._require_session(page_id)
		history = list(session.draft_config.get("conversationHistory", []))
		history.append(message.to_dict())
		draft = await self.update_draft(page_id, {"conversationHistory": history})
		LOGGER.debug("Message added for %s (role %s)", page_id, message.role)
		return draft

	async def send_chat_message(self, page_id: str, text: str, page_context: PageContext) -> AIReply:
		"""Run one chat turn: wait for rate-limit admission, ask the model, record both messages."""
		if self.ai_agent is None:
			raise RuntimeError("SessionManager was built without an AI agent")
		session = self._require_session(page_id)
		history = [ChatMessage.from_dict(m) for m in session.conversation_history]

		if self.rate_limiter is not None:
			await self.rate_limiter.acquire()
		reply = await self.ai_agent.generate_reply(history, text, page_context)
		if self.rate_limiter is not None:
			self.rate_limiter.track_token_usage(reply.tokens_used)

		await self.add_message(page_id, ChatMessage(role="user", content=text))
		await self.add_message(page_id, ChatMessage(role="assistant", content=reply.content))
		return reply

	async def confirm_changes(self, page_id: str) -> Dict[str, Any]:
		"""Publish the draft as the canonical config and close the session."""
		session = self._require_session(page_id)
		saved = await self.config_store.promote_draft_to_page(page_id)
		await self.config_store.delete_draft_config(page_id)
		self._sessions.pop(page_id, None)
		LOGGER.info("Changes confirmed for %s (session %s)", page_id, session.session_id)
		return saved

	async def cancel_changes(self, page_id: str) -> None:
		"""Discard the draft; the canonical config is left untouched."""
		session = self._require_session(page_id)
		await self.config_store.delete_draft_config(page_id)
		self._sessions.pop(page_id, None)
		LOGGER.info("Changes cancelled for %s (session %s)", page_id, session.session_id)

	# -- restart / cleanup ---------------------------------------------------------

	async def restore_sessions(self) -> int:
		"""Rebuild in-memory sessions from the drafts on disk.

		A draft that cannot be loaded is logged and skipped. Returns the number
		of sessions restored.
		"""
		page_ids = await self.config_store.list_draft_configs()
		LOGGER.info("Restoring sessions from %s draft(s)", len(page_ids))

		restored = 0
		for page_id in page_ids:
			try:
				draft = await self.config_store.load_draft_config(page_id)
				session = EditingSession(
					page_id=page_id,
					session_id=draft["sessionId"],
					draft_config=draft,
					started_at=datetime.fromisoformat(draft["startedAt"]),
				)
			except Exception:
				LOGGER.exception("Failed to restore session for %s", page_id)
				continue
			self._sessions[page_id] = session
			restored += 1
			LOGGER.debug("Session restored for %s (session %s)", page_id, session.session_id)

		LOGGER.info("Session restoration complete: %s restored", restored)
		return restored

	async def cleanup_abandoned_sessions(self) -> int:
		"""Delete drafts idle for longer than the timeout and drop their sessions.

		Age comes from the draft file's modification time, so drafts without an
		in-memory session are swept as well. Returns the number cleaned.
		"""
		page_ids = await self.config_store.list_draft_configs()
		now = self._clock()
		cleaned = 0

		for page_id in page_ids:
			try:
				stat = await self.config_store.stat_draft_config(page_id)
				if stat is None:
					LOGGER.warning("Draft for %s vanished during cleanup", page_id)
					continue
				age = now - stat.last_modified_at
				if age <= self.idle_timeout_seconds:
					continue
				LOGGER.info("Cleaning up abandoned session for %s (idle %.1f hours)", page_id, age / 3600)
				await self.config_store.delete_draft_config(page_id)
				self._sessions.pop(page_id, None)
				cleaned += 1
			except Exception:
				LOGGER.exception("Failed to clean up session for %s", page_id)

		LOGGER.info("Session cleanup complete: %s cleaned", cleaned)
		return cleaned

	def start_cleanup_job(self, interval_seconds: float = CLEANUP_INTERVAL_SECONDS) -> None:
		"""Sweep now and then every ``interval_seconds`` until stopped."""
		if self._cleanup_task is not None and not self._cleanup_task.done():
			return
		self._cleanup_task = asyncio.get_running_loop().create_task(self._run_cleanup(interval_seconds))
		LOGGER.info("Session cleanup job started (every %ss)", interval_seconds)

	async def _run_cleanup(self, interval_seconds: float) -> None:
		while True:
			try:
				await self.cleanup_abandoned_sessions()
			except asyncio.CancelledError:
				break
			except Exception:
				LOGGER.exception("Scheduled session cleanup failed")
			try:
				await asyncio.sleep(interval_seconds)
			except asyncio.CancelledError:
				break

	def stop_cleanup_job(self) -> None:
		if self._cleanup_task is None:
			return
		self._cleanup_task.cancel()
		self._cleanup_task = None
		LOGGER.info("Session cleanup job stopped")

	# -- reads -------------------------------------------------------------------------

	def get_session(self, page_id: str) -> Optional[EditingSession]:
		return self._sessions.get(page_id)

	def get_all_sessions(self) -> List[EditingSession]:
		return list(self._sessions.values())

	def has_active_session(self, page_id: str) -> bool:
		return page_id in self._sessions

	def snapshot_draft(self, page_id: str) -> Dict[str, Any]:
		"""Return a deep copy of the live draft for serialization."""
		return copy.deepcopy(self._require_session(page_id).draft_config)

	def _require_session(self, page_id: str) -> EditingSession:
		session = self._sessions.get(page_id)
		if session is None:
			raise NoActiveSessionError(page_id)
		return session
