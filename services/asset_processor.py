"""Image upload processing service.

Provides a small OOP wrapper around Pillow that validates uploads, keeps the
original file, writes responsive WebP variants and derives favicons from a
logo.

Public class: `AssetProcessor`

Example:
    processor = AssetProcessor(uploads_dir, processed_dir, public_dir)
    asset = await processor.process_image("team.jpg", raw_bytes, "image/jpeg", "Our team")
"""
from __future__ import annotations

import asyncio
import io
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Tuple

from PIL import Image, UnidentifiedImageError

from models.asset_record import ImageVariant, ProcessedAsset
from utils.errors import AssetProcessingError

LOGGER = logging.getLogger(__name__)

VALID_FORMATS = ("image/jpeg", "image/png", "image/gif")
DEFAULT_SIZES = (320, 768, 1920)
MAX_FILE_SIZE = 5 * 1024 * 1024


class AssetProcessor:
    """Validate, store and resize uploaded images.

    Args:
        uploads_dir: Where originals are written as ``<id><ext>``.
        processed_dir: Root for variants, written as ``<width>/<id>.webp``.
        public_dir: Static site root that receives favicons.
        max_file_size: Upload size limit in bytes.
        sizes: Target widths for responsive variants. Images are never upscaled.
        webp_quality: WebP encoder quality (0-100).
    """

    def __init__(
        self,
        uploads_dir: Path | str,
        processed_dir: Path | str,
        public_dir: Path | str,
        max_file_size: int = MAX_FILE_SIZE,
        sizes: Iterable[int] = DEFAULT_SIZES,
        webp_quality: int = 85,
    ) -> None:
        self.uploads_dir = Path(uploads_dir)
        self.processed_dir = Path(processed_dir)
        self.public_dir = Path(public_dir)
        self.max_file_size = max_file_size
        self.sizes = tuple(sorted(sizes))
        self.webp_quality = webp_quality

    def validate_image(self, data: bytes, mimetype: str) -> None:
        """Raise AssetProcessingError for oversized or unsupported uploads."""
        if not data:
            raise AssetProcessingError("Uploaded image is empty.")
        if len(data) > self.max_file_size:
            raise AssetProcessingError(f"File exceeds {self.max_file_size / (1024 * 1024):g}MB limit")
        if mimetype not in VALID_FORMATS:
            raise AssetProcessingError("Invalid image format. Accepted formats: JPEG, PNG, GIF")

    async def process_image(self, filename: str, data: bytes, mimetype: str, alt_text: str = "") -> ProcessedAsset:
        """Store an upload and generate its responsive variants."""
        self.validate_image(data, mimetype)

        asset_id = str(uuid.uuid4())
        ext = Path(filename or "").suffix.lower() or ".img"
        original_path = self.uploads_dir / f"{asset_id}{ext}"

        def _save_original() -> None:
            self.uploads_dir.mkdir(parents=True, exist_ok=True)
            original_path.write_bytes(data)

        await asyncio.to_thread(_save_original)
        LOGGER.info("Image uploaded: %s (%s, %s bytes, %s)", asset_id, filename, len(data), mimetype)

        # Pillow work is blocking -> run in thread
        try:
            variants = await asyncio.to_thread(self._generate_variants, data, asset_id)
        except AssetProcessingError:
            await asyncio.to_thread(original_path.unlink, True)
            raise

        return ProcessedAsset(
            id=asset_id,
            original_path=str(original_path),
            original_filename=filename,
            mimetype=mimetype,
            size=len(data),
            alt_text=alt_text,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
            variants=variants,
        )

    def _generate_variants(self, data: bytes, asset_id: str) -> list:
        try:
            src = Image.open(io.BytesIO(data))
            src.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise AssetProcessingError("Decoded bytes are not a supported image format") from exc

        # WebP handles RGB/RGBA; palette and other modes are converted first
        if src.mode not in ("RGB", "RGBA"):
            src = src.convert("RGBA")

        variants = []
        for width in self.sizes:
            out_dir = self.processed_dir / str(width)
            out_dir.mkdir(parents=True, exist_ok=True)
            out_path = out_dir / f"{asset_id}.webp"

            img = src.copy()
            if img.width > width:
                height = max(1, round(img.height * width / img.width))
                img = img.resize((width, height), Image.LANCZOS)
            img.save(out_path, format="WEBP", quality=self.webp_quality)

            size = out_path.stat().st_size
            LOGGER.debug("Image variant generated: %s at %spx (%s bytes)", asset_id, width, size)
            variants.append(ImageVariant(width=width, path=str(out_path), size=size))
        return variants

    async def generate_favicon(self, logo_path: Path | str) -> Tuple[str, str, str]:
        """Write favicon.ico, apple-touch-icon.png and favicon-16x16.png from a logo.

        Returns the three output paths.
        """
        logo_path = Path(logo_path)
        if not logo_path.is_file():
            raise AssetProcessingError(f"Logo file not found: {logo_path}")

        def _render() -> Tuple[str, str, str]:
            self.public_dir.mkdir(parents=True, exist_ok=True)
            try:
                with Image.open(logo_path) as logo:
                    logo = logo.convert("RGBA")
                    favicon = self.public_dir / "favicon.ico"
                    apple = self.public_dir / "apple-touch-icon.png"
                    small = self.public_dir / "favicon-16x16.png"
                    self._square(logo, 32).save(favicon, format="ICO", sizes=[(32, 32)])
                    self._square(logo, 180).save(apple, format="PNG", optimize=True)
                    self._square(logo, 16).save(small, format="PNG", optimize=True)
            except (UnidentifiedImageError, OSError) as exc:
                raise AssetProcessingError(f"Could not read logo image: {logo_path}") from exc
            return str(favicon), str(apple), str(small)

        paths = await asyncio.to_thread(_render)
        LOGGER.info("Favicons generated from %s", logo_path)
        return paths

    @staticmethod
    def _square(src: Image.Image, size: int) -> Image.Image:
        """Fit ``src`` inside a transparent ``size`` x ``size`` canvas."""
        img = src.copy()
        img.thumbnail((size, size), Image.LANCZOS)
        canvas = Image.new("RGBA", (size, size), (255, 255, 255, 0))
        canvas.paste(img, ((size - img.width) // 2, (size - img.height) // 2), img)
        return canvas

    async def delete_asset(self, asset: ProcessedAsset) -> None:
        """Remove the original and every variant; missing files are logged."""
        for path in [asset.original_path, *(v.path for v in asset.variants)]:
            try:
                await asyncio.to_thread(Path(path).unlink)
            except FileNotFoundError:
                LOGGER.warning("Asset file already missing: %s", path)
        LOGGER.info("Asset deleted: %s", asset.id)
