from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass
class ImageVariant:
    """One resized WebP rendition of an uploaded image."""

    width: int
    path: str
    size: int


@dataclass
class ProcessedAsset:
    """Uploaded image plus its responsive variants.

    Attributes:
        id: Generated identifier shared by the original and its variants.
        original_path: Where the untouched upload was written.
        original_filename: Filename supplied by the client.
        mimetype: Declared content type of the upload.
        size: Upload size in bytes.
        variants: Resized renditions, smallest first.
        alt_text: Accessibility text supplied with the upload.
        uploaded_at: ISO-8601 timestamp of processing.
    """

    id: str
    original_path: str
    original_filename: str
    mimetype: str
    size: int
    alt_text: str
    uploaded_at: str
    variants: List[ImageVariant] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
