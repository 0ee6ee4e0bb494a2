"""
DirectoryImageStore — a ready-made transform callback that stores each
image in a local directory and returns its URL.

File names are content-addressed (sha256 prefix + original extension), so a
picture anchored in several cells is written once and every cell receives
the same URL.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
from pathlib import Path
from typing import Dict, Union

from dto.coordinate import CellCoordinate
from dto.image_location import ImageFile

logger = logging.getLogger(__name__)

_DIGEST_CHARS = 16


class DirectoryImageStore:
    """
    Usage::

        store = DirectoryImageStore("out/images", base_url="https://cdn.example.com/img/")
        await excel.transform_images_to_str(store)
    """

    def __init__(self, directory: Union[str, Path], base_url: str = ""):
        self.directory = Path(directory)
        self.base_url = base_url
        self._stored: Dict[str, str] = {}

    @staticmethod
    def file_name_for(file: ImageFile) -> str:
        digest = hashlib.sha256(file.data).hexdigest()[:_DIGEST_CHARS]
        ext = posixpath.splitext(file.name)[1].lower()
        return f"{digest}{ext}"

    def url_for(self, file_name: str) -> str:
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{file_name}"
        return (self.directory / file_name).resolve().as_uri()

    async def __call__(self, file: ImageFile, cell: CellCoordinate) -> str:
        file_name = self.file_name_for(file)
        url = self._stored.get(file_name)
        if url is None:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / file_name).write_bytes(file.data)
            url = self._stored[file_name] = self.url_for(file_name)
            logger.info("Stored %s (%d bytes) as %s", file.path, file.size, file_name)
        logger.debug("Cell %s -> %s", cell.a1, url)
        return url
