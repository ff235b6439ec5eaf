"""Page listing, editing sessions, chat turns and version history."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from fastapi import HTTPException, Request

from models.ai_models import PageContext, PageIntent
from services.session_manager import SessionManager
from services.static_generator import StaticGenerator
from services.version_manager import VersionManager
from controllers.http_errors import to_http_exception
from dal.config_store import ConfigStore
from utils.errors import AlreadyEditingError, NoActiveSessionError, PageNotFoundError, SiteBuilderError

LOGGER = logging.getLogger(__name__)


def _components(request: Request):
	state = request.app.state
	return state.config_store, state.session_manager, state.version_manager, state.static_generator


async def _publish_page(generator: StaticGenerator, page_id: str) -> bool:
	"""Re-render one page; the canonical config is already saved either way."""
	try:
		await generator.generate_page(page_id)
	except (SiteBuilderError, OSError):
		LOGGER.exception("Static page generation failed for %s", page_id)
		return False
	return True


async def list_pages(request: Request) -> Dict[str, Any]:
	store: ConfigStore = request.app.state.config_store
	manager: SessionManager = request.app.state.session_manager
	try:
		pages = []
		for page_id in await store.list_pages():
			config = await store.load_page_config(page_id)
			pages.append({**config, "editing": manager.has_active_session(page_id)})
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {"pages": pages}


async def start_editing(request: Request, page_id: str) -> Dict[str, Any]:
	manager: SessionManager = request.app.state.session_manager
	try:
		session = await manager.start_editing(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {
		"pageId": page_id,
		"sessionId": session.session_id,
		"startedAt": session.started_at.isoformat(),
		"draft": manager.snapshot_draft(page_id),
	}


async def update_draft(request: Request, page_id: str, updates: Mapping[str, Any]) -> Dict[str, Any]:
	manager: SessionManager = request.app.state.session_manager
	if not updates:
		raise HTTPException(status_code=400, detail="No draft fields supplied")
	try:
		await manager.update_draft(page_id, updates)
		draft = manager.snapshot_draft(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {"pageId": page_id, "draft": draft}


async def build_page_context(store: ConfigStore, draft: Dict[str, Any]) -> PageContext:
	"""Ground the assistant in the site settings and the page being drafted."""
	site = await store.load_site_config()
	return PageContext(
		business_name=site["businessName"],
		industry=site["industry"],
		business_description=site["description"],
		page_title=draft.get("title", ""),
		intent=PageIntent.from_config(draft.get("intent")),
	)


async def ai_chat(request: Request, page_id: str, message: str) -> Dict[str, Any]:
	store: ConfigStore = request.app.state.config_store
	manager: SessionManager = request.app.state.session_manager
	if not message.strip():
		raise HTTPException(status_code=400, detail="Message must not be empty")
	try:
		context = await build_page_context(store, manager.snapshot_draft(page_id))
		reply = await manager.send_chat_message(page_id, message, context)
		draft = manager.snapshot_draft(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {
		"pageId": page_id,
		"reply": reply.content,
		"tokensUsed": reply.tokens_used,
		"conversationHistory": draft.get("conversationHistory", []),
	}


async def confirm_changes(request: Request, page_id: str) -> Dict[str, Any]:
	"""Back up the canonical page, publish the draft and re-render the page."""
	_, manager, versions, generator = _components(request)
	try:
		if not manager.has_active_session(page_id):
			raise NoActiveSessionError(page_id)
		backup = await versions.create_backup(page_id)
		saved = await manager.confirm_changes(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc

	published = await _publish_page(generator, page_id)
	return {"pageId": page_id, "backupVersion": backup, "page": saved, "published": published}


async def cancel_changes(request: Request, page_id: str) -> Dict[str, Any]:
	manager: SessionManager = request.app.state.session_manager
	try:
		await manager.cancel_changes(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {"pageId": page_id, "cancelled": True}


async def list_versions(request: Request, page_id: str) -> Dict[str, Any]:
	store: ConfigStore = request.app.state.config_store
	versions: VersionManager = request.app.state.version_manager
	try:
		if not await store.page_config_exists(page_id):
			raise PageNotFoundError(page_id)
		records = await versions.list_versions(page_id)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc
	return {"pageId": page_id, "versions": [record.to_dict() for record in records]}


async def rollback(request: Request, page_id: str, version: int) -> Dict[str, Any]:
	"""Restore a stored version; refused while the page is being edited."""
	_, manager, versions, generator = _components(request)
	try:
		if manager.has_active_session(page_id):
			raise AlreadyEditingError(page_id)
		saved = await versions.restore_version(page_id, version)
	except SiteBuilderError as exc:
		raise to_http_exception(exc) from exc

	published = await _publish_page(generator, page_id)
	return {"pageId": page_id, "restoredVersion": version, "page": saved, "published": published}
