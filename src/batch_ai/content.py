"""
Reading target content.

Files are read as text; directories are listed one level deep.
"""

import asyncio
import logging

from .exceptions import ReadError
from .types import Target
from .types import TargetKind

logger = logging.getLogger(__name__)


class TargetReader:
    """
    Reads the content of a target off the event loop.

    Example:
        reader = TargetReader()
        text = await reader.read(Target.from_path("src/main.py"))
    """

    async def read(self, target: Target) -> str:
        """
        Read a target.

        Args:
            target: File or directory to read

        Returns:
            Raw text for files, a listing for directories

        Raises:
            ReadError: If the target cannot be accessed
        """
        try:
            if target.kind == TargetKind.DIRECTORY:
                return await asyncio.to_thread(self._list_directory, target)
            return await asyncio.to_thread(self._read_file, target)
        except OSError as e:
            raise ReadError(str(target.path), f"Failed to read {target.path}: {e}") from e

    def _list_directory(self, target: Target) -> str:
        lines = []
        for entry in sorted(target.path.iterdir(), key=lambda p: p.name):
            marker = "[DIR]" if entry.is_dir() else "[FILE]"
            lines.append(f"{marker} {entry.name}")
        listing = "\n".join(lines)
        return f"Directory: {target.path}\nContents:\n{listing}"

    def _read_file(self, target: Target) -> str:
        data = target.path.read_bytes()
        logger.debug(f"Read {len(data)} bytes from {target.path}")
        return data.decode("utf-8", errors="replace")
