from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.asset_controller import generate_favicon, upload_image

router = APIRouter(prefix="/api/assets")


class FaviconPayload(BaseModel):
    logoPath: str


@router.post("/upload")
async def upload_image_route(
    request: Request,
    image: UploadFile = File(...),
    altText: str = Form(...),
):
    """Upload a JPEG/PNG/GIF and generate its WebP variants."""
    try:
        return await upload_image(request, image, altText)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/favicon")
async def generate_favicon_route(request: Request, payload: FaviconPayload):
    """Generate favicon.ico and touch icons from an uploaded logo."""
    try:
        return await generate_favicon(request, payload.logoPath)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
