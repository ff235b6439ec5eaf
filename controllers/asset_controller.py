from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from fastapi import HTTPException, Request, UploadFile

from controllers.http_errors import to_http_exception
from services.asset_processor import AssetProcessor
from utils.errors import SiteBuilderError


async def upload_image(request: Request, file: UploadFile, alt_text: str) -> Dict[str, Any]:
    """Store an uploaded image and return its record with responsive variants.

    Args:
        request: FastAPI Request object (used to access app.state).
        file: Uploaded JPEG, PNG or GIF.
        alt_text: Required accessibility text for the image.
    """
    if not alt_text or not alt_text.strip():
        raise HTTPException(status_code=400, detail="Alt text is required")

    processor: AssetProcessor = request.app.state.asset_processor
    raw = await file.read()
    try:
        asset = await processor.process_image(
            file.filename or "upload",
            raw,
            file.content_type or "",
            alt_text.strip(),
        )
    except SiteBuilderError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True, "asset": asset.to_dict()}


async def generate_favicon(request: Request, logo_path: str) -> Dict[str, Any]:
    """Derive favicons from a logo that was uploaded into the assets folder."""
    processor: AssetProcessor = request.app.state.asset_processor
    assets_root = request.app.state.settings.assets_dir.resolve()
    candidate = Path(logo_path)
    if not candidate.is_absolute():
        candidate = assets_root / candidate
    candidate = candidate.resolve()
    if not candidate.is_relative_to(assets_root):
        raise HTTPException(status_code=400, detail="Logo must live inside the assets directory")

    try:
        favicon, apple, small = await processor.generate_favicon(candidate)
    except SiteBuilderError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True, "favicon": favicon, "appleTouchIcon": apple, "favicon16": small}
