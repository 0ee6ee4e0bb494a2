"""
ExcelWorkbook — an .xlsx package loaded both as raw parts and as an
openpyxl workbook.

The raw parts feed image resolution; the openpyxl workbook owns the cell
grid that ``transform_images_to_str`` rewrites and ``export`` serialises.

Grid data is exchanged as a list of rows, zero-based and absolute:
``data[0][0]`` is cell A1 whatever the sheet's used range is.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, BinaryIO, Collection, Iterable, List, Optional, Tuple, Union

import openpyxl
from openpyxl import Workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.worksheet.worksheet import Worksheet

from dto.image_location import ImageLocationMap
from errors import NotLoadedError, SheetNotExistError
from extractors.images import ImageLocationResolver
from extractors.parts import PackagePartAccessor
from rewriter import CellRewriteEngine, TransformCallback, TransformReport

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, Path, BinaryIO]
Destination = Union[str, Path, BinaryIO]


def _read_source(source: Source) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    return source.read()


class ExcelWorkbook:
    """
    Usage::

        excel = ExcelWorkbook().load("book.xlsx")
        await excel.transform_images_to_str(upload)
        excel.export("book_with_urls.xlsx")
    """

    def __init__(self) -> None:
        self._book: Optional[Workbook] = None
        self._parts: Optional[PackagePartAccessor] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, source: Source) -> "ExcelWorkbook":
        data = _read_source(source)
        self._parts = PackagePartAccessor.from_bytes(data)
        self._book = openpyxl.load_workbook(
            io.BytesIO(data),
            data_only=False,
            keep_links=True,
        )
        logger.info(
            "Loaded workbook: %d part(s), sheets %s",
            len(self._parts.names()),
            self._book.sheetnames,
        )
        return self

    @property
    def is_loaded(self) -> bool:
        return self._book is not None

    @property
    def book(self) -> Workbook:
        self._assert_has_loaded()
        return self._book

    @property
    def parts(self) -> PackagePartAccessor:
        self._assert_has_loaded()
        return self._parts

    @property
    def sheet_names(self) -> List[str]:
        return list(self.book.sheetnames)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def resolve_image_locations(
        self, sheet_names: Optional[Iterable[str]] = None
    ) -> ImageLocationMap:
        """
        Map each sheet (default: all, in workbook order) to the images
        anchored on it.  Read-only; recomputed on every call.
        """
        names = self.sheet_names if sheet_names is None else list(sheet_names)
        for name in names:
            self._assert_sheet_exist(name)
        return ImageLocationResolver(self.parts).resolve(names)

    async def transform_images_to_str(
        self,
        callback: TransformCallback,
        sheet_names: Optional[Iterable[str]] = None,
    ) -> TransformReport:
        """Replace every anchored image's cell with ``callback``'s string."""
        return await CellRewriteEngine().transform(self, callback, sheet_names)

    # ------------------------------------------------------------------
    # Grid access
    # ------------------------------------------------------------------

    def get_data(self) -> List[dict]:
        return [
            {"sheet_name": name, "data": self.get_data_by_sheet_name(name)}
            for name in self.sheet_names
        ]

    def get_data_by_sheet_name(self, sheet_name: str) -> List[List[Any]]:
        self._assert_sheet_exist(sheet_name)
        ws = self.book[sheet_name]
        if not isinstance(ws, Worksheet):
            # chartsheets carry no cells
            return []
        if ws.max_row == 1 and ws.max_column == 1 and ws["A1"].value is None:
            return []
        return [
            list(row)
            for row in ws.iter_rows(
                min_row=1,
                min_col=1,
                max_row=ws.max_row,
                max_col=ws.max_column,
                values_only=True,
            )
        ]

    def set_data(
        self,
        sheet_name: str,
        data: List[List[Any]],
        text_cells: Collection[Tuple[int, int]] = (),
    ) -> None:
        """
        Write *data* onto the sheet starting at A1.  ``None`` entries leave
        the existing cell alone; unchanged values are not rewritten.

        Strings at the zero-based ``(row, col)`` positions in *text_cells*
        are stored as plain text even when they start with "=", which
        openpyxl would otherwise treat as a formula.
        """
        ws = self._worksheet(sheet_name)
        for row_idx, row in enumerate(data, start=1):
            if not row:
                continue
            for col_idx, value in enumerate(row, start=1):
                if value is None:
                    continue
                cell = ws.cell(row=row_idx, column=col_idx)
                if isinstance(cell, MergedCell):
                    cell = self._merge_anchor_cell(ws, cell)
                as_text = isinstance(value, str) and (row_idx - 1, col_idx - 1) in text_cells
                if cell.value != value or (as_text and cell.data_type != "s"):
                    cell.value = value
                    if as_text:
                        cell.data_type = "s"

    @staticmethod
    def _merge_anchor_cell(ws: Worksheet, cell: MergedCell):
        """Redirect a write inside a merged range to its top-left cell."""
        for merged in ws.merged_cells.ranges:
            if cell.coordinate in merged:
                logger.warning(
                    "Cell %s is inside merged range %s; writing to its top-left cell",
                    cell.coordinate,
                    merged.coord,
                )
                return ws.cell(row=merged.min_row, column=merged.min_col)
        return cell

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self, destination: Optional[Destination] = None) -> bytes:
        """Serialise the workbook; also write it to *destination* if given."""
        buf = io.BytesIO()
        self.book.save(buf)
        data = buf.getvalue()

        if isinstance(destination, (str, Path)):
            Path(destination).write_bytes(data)
            logger.info("Workbook written to %s", destination)
        elif destination is not None:
            destination.write(data)
        return data

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def _worksheet(self, sheet_name: str) -> Worksheet:
        self._assert_sheet_exist(sheet_name)
        ws = self.book[sheet_name]
        if not isinstance(ws, Worksheet):
            raise SheetNotExistError(sheet_name)
        return ws

    def _assert_has_loaded(self) -> None:
        if self._book is None or self._parts is None:
            raise NotLoadedError()

    def _assert_sheet_exist(self, sheet_name: str) -> None:
        if sheet_name not in self.book.sheetnames:
            raise SheetNotExistError(sheet_name)
