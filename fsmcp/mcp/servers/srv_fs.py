"""FileSystem Server - File operations"""
import asyncio
import os
from typing import List, Tuple

import aiofiles


class FileSystemServer:
    async def read_file(self, path: str) -> str:
        """Read a whole file as UTF-8 text"""
        # newline="" keeps line endings byte-exact across read/write
        async with aiofiles.open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
            return await f.read()

    async def write_file(self, path: str, content: str) -> None:
        """Create or overwrite a file with UTF-8 text"""
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(content)

    async def list_directory(self, path: str) -> List[Tuple[str, bool]]:
        """Return (name, is_directory) for each immediate entry, unsorted"""
        return await asyncio.to_thread(self._scan, path)

    @staticmethod
    def _scan(path: str) -> List[Tuple[str, bool]]:
        with os.scandir(path) as entries:
            return [(entry.name, entry.is_dir(follow_symlinks=False)) for entry in entries]
