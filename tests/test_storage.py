from __future__ import annotations

import asyncio
from pathlib import Path

from dto.coordinate import CellCoordinate
from dto.image_location import ImageFile
from utils.storage import DirectoryImageStore

from builders import PNG_1X1, PNG_OTHER

A1 = CellCoordinate(row=0, col=0)
B2 = CellCoordinate(row=1, col=1)


class TestDirectoryImageStore:

    def test_stores_once_per_content(self, tmp_path: Path):
        store = DirectoryImageStore(tmp_path / "images", base_url="https://cdn.example.com/img/")
        image = ImageFile.from_part("xl/media/image1.png", PNG_1X1)

        first = asyncio.run(store(image, A1))
        second = asyncio.run(store(image, B2))

        assert first == second
        assert first.startswith("https://cdn.example.com/img/")
        assert first.endswith(".png")
        stored = list((tmp_path / "images").iterdir())
        assert len(stored) == 1
        assert stored[0].read_bytes() == PNG_1X1

    def test_distinct_content_gets_distinct_names(self, tmp_path: Path):
        store = DirectoryImageStore(tmp_path, base_url="https://cdn")
        a = asyncio.run(store(ImageFile.from_part("xl/media/a.png", PNG_1X1), A1))
        b = asyncio.run(store(ImageFile.from_part("xl/media/b.png", PNG_OTHER), B2))
        assert a != b

    def test_file_uri_without_base_url(self, tmp_path: Path):
        store = DirectoryImageStore(tmp_path)
        url = asyncio.run(store(ImageFile.from_part("xl/media/x.JPEG", b"jpeg"), A1))
        assert url.startswith("file://")
        assert url.endswith(".jpeg")
