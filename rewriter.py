"""
CellRewriteEngine — replaces anchored images with strings in the grid.

For every sheet, in resolver order, and every image location, in anchor
order, the caller's callback is awaited with the image file and the
location's top-left cell; the returned string is written into that cell.
A sheet's grid is committed once all its images are processed, so a failure
part-way leaves earlier sheets rewritten and the current one untouched.

The callback may be a coroutine function or a plain function; calls are
strictly sequential.
"""

from __future__ import annotations

import inspect
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    Optional,
    Union,
)

from pydantic import BaseModel

from dto.coordinate import CellCoordinate
from dto.image_location import ImageFile
from errors import InvalidCallbackResultError

if TYPE_CHECKING:
    from workbook import ExcelWorkbook

logger = logging.getLogger(__name__)

TransformCallback = Callable[
    [ImageFile, CellCoordinate], Union[str, Awaitable[str]]
]


class CellWrite(BaseModel):
    sheet_name: str
    cell: CellCoordinate
    value: str


class TransformReport(BaseModel):
    """Every cell written by one ``transform`` call, in write order."""

    writes: List[CellWrite] = []

    @property
    def count(self) -> int:
        return len(self.writes)


def place_value(data: List[List[Any]], cell: CellCoordinate, value: Any) -> None:
    """Set ``data[cell.row][cell.col]``, growing rows and cells as needed."""
    while len(data) <= cell.row:
        data.append([])
    row = data[cell.row]
    if row is None:
        row = data[cell.row] = []
    while len(row) <= cell.col:
        row.append(None)
    row[cell.col] = value


async def _invoke(
    callback: TransformCallback, file: ImageFile, cell: CellCoordinate
) -> str:
    result = callback(file, cell)
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, str):
        raise InvalidCallbackResultError(result)
    return result


class CellRewriteEngine:

    async def transform(
        self,
        workbook: "ExcelWorkbook",
        callback: TransformCallback,
        sheet_names: Optional[Iterable[str]] = None,
    ) -> TransformReport:
        locations_map = workbook.resolve_image_locations(sheet_names)
        report = TransformReport()

        for sheet_name, locations in locations_map.items():
            if not locations:
                continue

            data = workbook.get_data_by_sheet_name(sheet_name)
            for location in locations:
                value = await _invoke(callback, location.file, location.from_)
                place_value(data, location.from_, value)
                report.writes.append(
                    CellWrite(sheet_name=sheet_name, cell=location.from_, value=value)
                )
                logger.debug(
                    "  %s!%s <- %s", sheet_name, location.from_.a1, value
                )

            workbook.set_data(
                sheet_name,
                data,
                text_cells={(loc.from_.row, loc.from_.col) for loc in locations},
            )
            logger.info(
                "Sheet %r: rewrote %d image cell(s)", sheet_name, len(locations)
            )

        return report
