"""JSON file store for site, page and draft configuration.

Layout under the configured directory:

    site.json                 business/site settings
    pages/<id>.json           canonical page configuration
    pages/<id>.draft.json     working copy owned by an editing session

Every write goes to ``<path>.tmp`` first and is renamed into place, so a
reader never observes a half-written file. Blocking file I/O runs in a worker
thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from utils.errors import (
    ConfigValidationError,
    DraftNotFoundError,
    PageNotFoundError,
    SiteConfigNotFoundError,
)
from utils import validators

LOGGER = logging.getLogger(__name__)

PAGE_SUFFIX = ".json"
DRAFT_SUFFIX = ".draft.json"
SESSION_ONLY_FIELDS = ("sessionId", "startedAt", "conversationHistory")

SITE_REQUIRED_STRINGS = ("businessName", "legalName", "industry", "description", "email", "phone", "domain")
ADDRESS_FIELDS = ("street", "city", "state", "zip", "country")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class DraftStat:
    """File metadata for a draft; ``last_modified_at`` is a Unix timestamp."""

    last_modified_at: float


def validate_site_config(config: Dict[str, Any]) -> None:
    """Raise ConfigValidationError listing every problem with a site config."""
    if not isinstance(config, dict):
        raise ConfigValidationError("Site configuration must be a JSON object")

    errors: List[str] = []
    for name in SITE_REQUIRED_STRINGS:
        value = config.get(name)
        if not value or not isinstance(value, str):
            errors.append(f"{name} is required and must be a string")

    email = config.get("email")
    if isinstance(email, str) and email and not validators.is_valid_email(email):
        errors.append("email must be a valid email address (e.g., user@example.com)")

    phone = config.get("phone")
    if isinstance(phone, str) and phone and not validators.is_valid_phone(phone):
        errors.append("phone must be a valid phone number with at least 10 digits")

    domain = config.get("domain")
    if isinstance(domain, str) and domain and not validators.is_valid_domain(domain):
        errors.append("domain must be a valid domain name (e.g., example.com)")

    for name in ("primaryColor", "secondaryColor"):
        color = config.get(name)
        if isinstance(color, str) and color and not validators.is_valid_hex_color(color):
            errors.append(f"{name} must be a valid hex color (e.g., #FF5733 or #F57)")

    address = config.get("address")
    if not isinstance(address, dict):
        errors.append("address is required and must be an object")
    else:
        for name in ADDRESS_FIELDS:
            value = address.get(name)
            if not value or not isinstance(value, str):
                errors.append(f"address.{name} is required and must be a string")

    if not isinstance(config.get("navigation"), list):
        errors.append("navigation must be an array")

    if errors:
        raise ConfigValidationError("Site configuration validation failed: " + "; ".join(errors))


def validate_page_config(config: Dict[str, Any]) -> None:
    """Raise ConfigValidationError listing every problem with a page config."""
    if not isinstance(config, dict):
        raise ConfigValidationError("Page configuration must be a JSON object")

    errors: List[str] = []
    page_id = config.get("id")
    if not page_id or not isinstance(page_id, str):
        errors.append("id is required and must be a string")
    elif not validators.is_valid_page_id(page_id):
        errors.append("id may only contain letters, digits, '-' and '_'")

    title = config.get("title")
    if not title or not isinstance(title, str):
        errors.append("title is required and must be a string")

    if not isinstance(config.get("sections"), list):
        errors.append("sections must be an array")

    meta = config.get("metaDescription")
    if not meta or not isinstance(meta, str):
        errors.append("metaDescription is required and must be a string")

    if not isinstance(config.get("keywords"), list):
        errors.append("keywords must be an array")

    intent = config.get("intent")
    if not isinstance(intent, dict):
        errors.append("intent is required and must be an object")
    else:
        for name in ("primaryGoal", "targetAudience"):
            value = intent.get(name)
            if not value or not isinstance(value, str):
                errors.append(f"intent.{name} is required and must be a string")
        if not isinstance(intent.get("callsToAction"), list):
            errors.append("intent.callsToAction must be an array")

    image = config.get("featuredImage")
    if isinstance(image, str) and image:
        if not validators.is_valid_url(image) and not image.startswith("/"):
            errors.append("featuredImage must be a valid URL or path")

    if errors:
        raise ConfigValidationError("Page configuration validation failed: " + "; ".join(errors))


def strip_session_fields(draft: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``draft`` without the session-only keys."""
    return {key: value for key, value in draft.items() if key not in SESSION_ONLY_FIELDS}


class ConfigStore:
    """Load and save configuration documents under ``config_dir``."""

    def __init__(self, config_dir: Path | str) -> None:
        self.config_dir = Path(config_dir)
        self.pages_dir = self.config_dir / "pages"
        self.site_config_path = self.config_dir / "site.json"
        self.pages_dir.mkdir(parents=True, exist_ok=True)

    # -- paths -----------------------------------------------------------------

    def page_config_path(self, page_id: str) -> Path:
        self._check_page_id(page_id)
        return self.pages_dir / f"{page_id}{PAGE_SUFFIX}"

    def draft_config_path(self, page_id: str) -> Path:
        self._check_page_id(page_id)
        return self.pages_dir / f"{page_id}{DRAFT_SUFFIX}"

    @staticmethod
    def _check_page_id(page_id: str) -> None:
        if not validators.is_valid_page_id(page_id):
            raise ConfigValidationError(f"Invalid page id: {page_id!r}", field="id", value=page_id)

    # -- low level file helpers --------------------------------------------------

    @staticmethod
    def _atomic_write(path: Path, content: str) -> None:
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(content, encoding="utf-8")
            os.replace(tmp_path, path)
        except Exception:
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            LOGGER.error("Atomic write failed for %s", path)
            raise

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)

    async def _write_json(self, path: Path, document: Dict[str, Any]) -> None:
        content = json.dumps(document, indent=2, ensure_ascii=False)
        await asyncio.to_thread(self._atomic_write, path, content)

    # -- site ----------------------------------------------------------------------

    async def load_site_config(self) -> Dict[str, Any]:
        try:
            config = await asyncio.to_thread(self._read_json, self.site_config_path)
        except FileNotFoundError as exc:
            LOGGER.warning("Site config not found at %s", self.site_config_path)
            raise SiteConfigNotFoundError("Site configuration not found") from exc
        except json.JSONDecodeError as exc:
            raise ConfigValidationError("Site configuration contains invalid JSON") from exc
        validate_site_config(config)
        return config

    async def save_site_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        validate_site_config(config)
        config["lastModified"] = utc_now_iso()
        await self._write_json(self.site_config_path, config)
        LOGGER.info("Site config saved")
        return config

    # -- pages ---------------------------------------------------------------------

    async def load_page_config(self, page_id: str) -> Dict[str, Any]:
        path = self.page_config_path(page_id)
        try:
            config = await asyncio.to_thread(self._read_json, path)
        except FileNotFoundError as exc:
            LOGGER.warning("Page config not found: %s", page_id)
            raise PageNotFoundError(page_id) from exc
        except json.JSONDecodeError as exc:
            raise ConfigValidationError(f"Page configuration contains invalid JSON: {page_id}") from exc
        validate_page_config(config)
        return config

    async def save_page_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and persist a canonical page config.

        Stamps ``lastModified`` and increments ``version``. Returns the saved
        document.
        """
        validate_page_config(config)
        config["lastModified"] = utc_now_iso()
        config["version"] = int(config.get("version") or 0) + 1
        await self._write_json(self.page_config_path(config["id"]), config)
        LOGGER.info("Page config saved: %s (version %s)", config["id"], config["version"])
        return config

    async def page_config_exists(self, page_id: str) -> bool:
        return await asyncio.to_thread(self.page_config_path(page_id).is_file)

    async def list_pages(self) -> List[str]:
        def _scan() -> List[str]:
            return sorted(
                p.name[: -len(PAGE_SUFFIX)]
                for p in self.pages_dir.iterdir()
                if p.is_file() and p.name.endswith(PAGE_SUFFIX) and not p.name.endswith(DRAFT_SUFFIX)
            )

        return await asyncio.to_thread(_scan)

    # -- drafts --------------------------------------------------------------------

    async def load_draft_config(self, page_id: str) -> Dict[str, Any]:
        path = self.draft_config_path(page_id)
        try:
            config = await asyncio.to_thread(self._read_json, path)
        except FileNotFoundError as exc:
            raise DraftNotFoundError(page_id) from exc
        except json.JSONDecodeError as exc:
            raise ConfigValidationError(f"Draft configuration contains invalid JSON: {page_id}") from exc
        validate_page_config(config)
        return config

    async def save_draft_config(self, draft: Dict[str, Any]) -> None:
        validate_page_config(draft)
        await self._write_json(self.draft_config_path(draft["id"]), draft)
        LOGGER.debug("Draft saved: %s (session %s)", draft["id"], draft.get("sessionId"))

    async def delete_draft_config(self, page_id: str) -> None:
        """Remove the draft file. A missing draft is not an error."""
        path = self.draft_config_path(page_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            LOGGER.debug("Draft already deleted: %s", page_id)
            return
        LOGGER.info("Draft deleted: %s", page_id)

    async def draft_config_exists(self, page_id: str) -> bool:
        return await asyncio.to_thread(self.draft_config_path(page_id).is_file)

    async def promote_draft_to_page(self, page_id: str) -> Dict[str, Any]:
        """Copy the draft onto the canonical config, minus session-only fields."""
        draft = await self.load_draft_config(page_id)
        saved = await self.save_page_config(strip_session_fields(draft))
        LOGGER.info("Draft promoted to page: %s", page_id)
        return saved

    async def list_draft_configs(self) -> List[str]:
        def _scan() -> List[str]:
            return sorted(
                p.name[: -len(DRAFT_SUFFIX)]
                for p in self.pages_dir.iterdir()
                if p.is_file() and p.name.endswith(DRAFT_SUFFIX)
            )

        return await asyncio.to_thread(_scan)

    async def stat_draft_config(self, page_id: str) -> Optional[DraftStat]:
        path = self.draft_config_path(page_id)
        try:
            stat = await asyncio.to_thread(path.stat)
        except FileNotFoundError:
            return None
        return DraftStat(last_modified_at=stat.st_mtime)
