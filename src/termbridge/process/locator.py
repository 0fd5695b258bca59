"""Resolution of the external package tool.

Tries, in order: a local archive in the project root, a PATH lookup,
a ``--version`` probe, and a list of common installation paths. When
all of those fail and the project root is writable, the archive is
downloaded into the project root.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from collections.abc import Iterable
from pathlib import Path

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TOOL_NAME = "pip"
DEFAULT_TOOL_ARCHIVE = "pip.pyz"
DEFAULT_TOOL_DOWNLOAD_URL = "https://bootstrap.pypa.io/pip/pip.pyz"
COMMON_TOOL_PATHS: tuple[str, ...] = (
    "/usr/local/bin/pip",
    "/usr/bin/pip",
    "/opt/homebrew/bin/pip",
    "~/.local/bin/pip",
)


class ToolLocator:
    """Finds the argv prefix that invokes the package tool."""

    def __init__(
        self,
        project_root: Path | str = ".",
        name: str = DEFAULT_TOOL_NAME,
        archive: str = DEFAULT_TOOL_ARCHIVE,
        download_url: str = DEFAULT_TOOL_DOWNLOAD_URL,
        common_paths: Iterable[str] = COMMON_TOOL_PATHS,
        interpreter: str = sys.executable,
        probe_timeout: float = 10.0,
        download_timeout: float = 60.0,
    ) -> None:
        self._project_root = Path(project_root).resolve()
        self._name = name
        self._archive = archive
        self._download_url = download_url
        self._common_paths = tuple(common_paths)
        self._interpreter = interpreter
        self._probe_timeout = probe_timeout
        self._download_timeout = download_timeout

    @property
    def name(self) -> str:
        return self._name

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def archive_path(self) -> Path:
        return self._project_root / self._archive

    async def locate(self) -> list[str] | None:
        """Return the argv prefix for the tool, or None if it cannot be found."""
        if self.archive_path.is_file():
            logger.debug("Using local archive %s", self.archive_path)
            return [self._interpreter, str(self.archive_path)]

        found = shutil.which(self._name)
        if found:
            logger.debug("Found %s on PATH at %s", self._name, found)
            return [found]

        if await self._probe(self._name):
            logger.debug("%s answered a version probe", self._name)
            return [self._name]

        for candidate in self._common_paths:
            path = Path(candidate).expanduser()
            if path.is_file() and os.access(path, os.X_OK):
                logger.debug("Found %s at %s", self._name, path)
                return [str(path)]

        if os.access(self._project_root, os.W_OK) and await self._download():
            return [self._interpreter, str(self.archive_path)]

        logger.warning("%s not found", self._name)
        return None

    async def _probe(self, executable: str) -> bool:
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                "--version",
                cwd=str(self._project_root),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError:
            return False
        try:
            return await asyncio.wait_for(process.wait(), timeout=self._probe_timeout) == 0
        except asyncio.TimeoutError:
            process.kill()
            return False

    async def _download(self) -> bool:
        target = self.archive_path
        tmp_path = target.with_suffix(".part")
        logger.info("Downloading %s from %s", self._archive, self._download_url)
        try:
            async with httpx.AsyncClient(
                timeout=self._download_timeout, follow_redirects=True
            ) as client:
                response = await client.get(self._download_url)
                response.raise_for_status()
            tmp_path.write_bytes(response.content)
            os.replace(tmp_path, target)
        except (httpx.HTTPError, OSError) as e:
            logger.warning("Download of %s failed: %s", self._archive, e)
            tmp_path.unlink(missing_ok=True)
            return False
        logger.info("Installed %s into %s", self._archive, self._project_root)
        return True
