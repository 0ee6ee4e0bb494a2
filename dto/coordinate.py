from pydantic import BaseModel, ConfigDict, Field
from openpyxl.utils import get_column_letter


class CellCoordinate(BaseModel):
    """Zero-based cell position, as written in drawing anchor markers."""

    model_config = ConfigDict(frozen=True)

    row: int = Field(ge=0)
    col: int = Field(ge=0)

    @property
    def a1(self) -> str:
        """A1-style reference for the same cell, e.g. row=2, col=1 -> 'B3'."""
        return f"{get_column_letter(self.col + 1)}{self.row + 1}"


class Anchor(BaseModel):
    """
    Cell range an image is anchored to.

    Single-cell anchors carry ``to == from_``.  Ordering between the two
    corners is taken from the source as-is.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: CellCoordinate = Field(alias="from")
    to: CellCoordinate
