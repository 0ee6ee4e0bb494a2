"""
Output DTOs of image resolution.

    ImageLocationMap
      └─ sheet name → List[ImageLocation]
           └─ file (ImageFile), from_, to

One ``ImageLocation`` exists per anchor.  When the same picture is anchored
in several cells, the locations share one ``ImageFile`` instance.
"""

from __future__ import annotations

import posixpath
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from dto.coordinate import CellCoordinate


class ImageFile(BaseModel):
    """Raw bytes of a media part together with its package path."""

    name: str  # e.g. "image1.png"
    path: str  # e.g. "xl/media/image1.png"
    data: bytes = Field(repr=False)

    @classmethod
    def from_part(cls, path: str, data: bytes) -> "ImageFile":
        return cls(name=posixpath.basename(path), path=path, data=data)

    @property
    def size(self) -> int:
        return len(self.data)


class ImageLocation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file: ImageFile
    from_: CellCoordinate = Field(alias="from")
    to: CellCoordinate


class ImageLocationSummary(BaseModel):
    """Serialisable view of an ``ImageLocation`` without the image bytes."""

    model_config = ConfigDict(populate_by_name=True)

    file: str
    size: int
    from_: str = Field(alias="from")
    to: str

    @classmethod
    def of(cls, location: ImageLocation) -> "ImageLocationSummary":
        return cls(
            file=location.file.path,
            size=location.file.size,
            from_=location.from_.a1,
            to=location.to.a1,
        )


ImageLocationMap = Dict[str, List[ImageLocation]]
