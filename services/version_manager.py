"""Rotating per-page backups of canonical page configuration."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from dal.config_store import ConfigStore
from models.version_record import VersionRecord
from utils.errors import VersionNotFoundError

LOGGER = logging.getLogger(__name__)

VERSION_FILE_RE = re.compile(r"^v(\d+)\.json$")


class VersionManager:
    """Keep the last ``max_versions`` snapshots of each page.

    Snapshots live at ``<versions_dir>/pages/<page_id>/v<n>.json``; numbers only
    ever grow, so the highest number is the newest backup.
    """

    def __init__(self, versions_dir: Path | str, config_store: ConfigStore, max_versions: int = 10) -> None:
        self.versions_dir = Path(versions_dir)
        self.config_store = config_store
        self.max_versions = max_versions

    def _page_dir(self, page_id: str) -> Path:
        # reuse the store's page id check before touching the filesystem
        self.config_store.page_config_path(page_id)
        return self.versions_dir / "pages" / page_id

    async def create_backup(self, page_id: str) -> int:
        """Snapshot the current canonical config; returns the new version number."""
        page_config = await self.config_store.load_page_config(page_id)
        versions = await self.list_versions(page_id)
        number = versions[0].number + 1 if versions else 1
        page_dir = self._page_dir(page_id)

        def _write() -> None:
            page_dir.mkdir(parents=True, exist_ok=True)
            (page_dir / f"v{number}.json").write_text(json.dumps(page_config, indent=2), encoding="utf-8")

        await asyncio.to_thread(_write)
        LOGGER.info("Backup created for %s: version %s", page_id, number)

        # versions is newest first and does not include the backup just written
        stale = versions[self.max_versions - 1:] if self.max_versions > 0 else versions
        for old in stale:
            await asyncio.to_thread((page_dir / old.filename).unlink, True)
            LOGGER.debug("Old version deleted for %s: version %s", page_id, old.number)
        return number

    async def list_versions(self, page_id: str) -> List[VersionRecord]:
        """Return stored versions, newest first. A page without backups has none."""
        page_dir = self._page_dir(page_id)

        def _scan() -> List[VersionRecord]:
            if not page_dir.is_dir():
                return []
            records = []
            for path in page_dir.iterdir():
                match = VERSION_FILE_RE.match(path.name)
                if not match:
                    continue
                mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
                records.append(VersionRecord(number=int(match.group(1)), filename=path.name, timestamp=mtime))
            return sorted(records, key=lambda r: r.number, reverse=True)

        return await asyncio.to_thread(_scan)

    async def get_version(self, page_id: str, version_number: int) -> Dict[str, Any]:
        path = self._page_dir(page_id) / f"v{int(version_number)}.json"
        try:
            content = await asyncio.to_thread(path.read_text, "utf-8")
        except FileNotFoundError as exc:
            raise VersionNotFoundError(page_id, version_number) from exc
        return json.loads(content)

    async def restore_version(self, page_id: str, version_number: int) -> Dict[str, Any]:
        """Make an old snapshot canonical again, backing up the current config first."""
        LOGGER.info("Restoring %s to version %s", page_id, version_number)
        version_config = await self.get_version(page_id, version_number)
        current = await self.config_store.load_page_config(page_id)
        await self.create_backup(page_id)
        # keep the version counter moving forward
        version_config["version"] = current.get("version", 0)
        saved = await self.config_store.save_page_config(version_config)
        LOGGER.info("Version %s restored for %s", version_number, page_id)
        return saved

    async def delete_all_versions(self, page_id: str) -> None:
        page_dir = self._page_dir(page_id)
        await asyncio.to_thread(shutil.rmtree, page_dir, True)
        LOGGER.info("All versions deleted for %s", page_id)
