from dto.coordinate import Anchor, CellCoordinate
from dto.image_location import (
    ImageFile,
    ImageLocation,
    ImageLocationMap,
    ImageLocationSummary,
)
from dto.sheet import Sheet

__all__ = [
    "Anchor",
    "CellCoordinate",
    "ImageFile",
    "ImageLocation",
    "ImageLocationMap",
    "ImageLocationSummary",
    "Sheet",
]
