"""FastAPI routes for pages, editing sessions and version history."""

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel, Field

from controllers.page_controller import (
	ai_chat,
	cancel_changes,
	confirm_changes,
	list_pages,
	list_versions,
	rollback,
	start_editing,
	update_draft,
)

router = APIRouter(prefix="/api/pages")


class ChatPayload(BaseModel):
	message: str


class RollbackPayload(BaseModel):
	version: int = Field(ge=1)


@router.get("")
async def list_pages_route(request: Request):
	try:
		return await list_pages(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{page_id}/edit")
async def start_editing_route(request: Request, page_id: str):
	try:
		return await start_editing(request, page_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.patch("/{page_id}/draft")
async def update_draft_route(request: Request, page_id: str, updates: Dict[str, Any] = Body(...)):
	try:
		return await update_draft(request, page_id, updates)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{page_id}/ai-chat")
async def ai_chat_route(request: Request, page_id: str, payload: ChatPayload):
	try:
		return await ai_chat(request, page_id, payload.message)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{page_id}/confirm")
async def confirm_changes_route(request: Request, page_id: str):
	try:
		return await confirm_changes(request, page_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{page_id}/cancel")
async def cancel_changes_route(request: Request, page_id: str):
	try:
		return await cancel_changes(request, page_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{page_id}/versions")
async def list_versions_route(request: Request, page_id: str):
	try:
		return await list_versions(request, page_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{page_id}/rollback")
async def rollback_route(request: Request, page_id: str, payload: RollbackPayload):
	try:
		return await rollback(request, page_id, payload.version)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
