"""
Rewrite tests: callbacks are awaited once per image location and their
result lands in the location's top-left cell.
"""

from __future__ import annotations

import asyncio
import io
from typing import List, Tuple

import openpyxl
import pytest

from dto.coordinate import CellCoordinate
from dto.image_location import ImageFile
from errors import ImageAnchorNotFoundError, InvalidCallbackResultError
from rewriter import CellRewriteEngine, place_value
from workbook import ExcelWorkbook

from builders import PNG_1X1, PNG_OTHER, make_xlsx, one_cell, two_cell

URL = "https://cdn/x.png"


def _load(data: bytes) -> ExcelWorkbook:
    return ExcelWorkbook().load(data)


class Recorder:
    """Async callback that records its calls and returns a fixed/derived URL."""

    def __init__(self, url: str = ""):
        self.url = url
        self.calls: List[Tuple[bytes, CellCoordinate]] = []

    async def __call__(self, file: ImageFile, cell: CellCoordinate) -> str:
        await asyncio.sleep(0)
        self.calls.append((file.data, cell))
        return self.url or f"https://cdn/{cell.a1}.png"


@pytest.fixture
def data_sheet() -> bytes:
    return make_xlsx(
        {"Data": {(0, 0): "name", (0, 1): "photo", (2, 0): "Widget", (5, 5): 42}},
        {
            "Data": {
                "anchors": [two_cell("rId1", (2, 1), (4, 3))],
                "media": {"rId1": ("image1.png", PNG_1X1)},
            }
        },
    )


class TestTransform:

    def test_writes_callback_result_at_from_cell(self, data_sheet: bytes):
        excel = _load(data_sheet)
        before = excel.get_data_by_sheet_name("Data")

        recorder = Recorder(URL)
        asyncio.run(excel.transform_images_to_str(recorder))

        after = excel.get_data_by_sheet_name("Data")
        assert after[2][1] == URL
        # Nothing else changed.
        for r, row in enumerate(before):
            for c, value in enumerate(row):
                if (r, c) != (2, 1):
                    assert after[r][c] == value
        assert recorder.calls == [(PNG_1X1, CellCoordinate(row=2, col=1))]

    def test_never_writes_at_to_cell(self, data_sheet: bytes):
        excel = _load(data_sheet)
        asyncio.run(excel.transform_images_to_str(Recorder(URL)))
        ws = excel.book["Data"]
        assert ws.cell(row=3, column=2).value == URL
        assert ws.cell(row=5, column=4).value is None

    def test_shared_image_written_into_each_anchor_cell(self):
        data = make_xlsx(
            {"Data": {}},
            {
                "Data": {
                    "anchors": [
                        two_cell("rId1", (1, 1), (2, 2)),
                        one_cell("rId1", (7, 4)),
                    ],
                    "media": {"rId1": ("image1.png", PNG_1X1)},
                }
            },
        )
        excel = _load(data)
        recorder = Recorder()
        asyncio.run(excel.transform_images_to_str(recorder))

        ws = excel.book["Data"]
        assert ws["B2"].value == "https://cdn/B2.png"
        assert ws["E8"].value == "https://cdn/E8.png"
        assert [data for data, _ in recorder.calls] == [PNG_1X1, PNG_1X1]

    def test_callback_order_is_declaration_order_across_sheets(self):
        data = make_xlsx(
            {"First": {}, "Plain": {(0, 0): "x"}, "Second": {}},
            {
                "First": {
                    "anchors": [
                        two_cell("rId1", (3, 0), (4, 1)),
                        two_cell("rId1", (0, 0), (1, 1)),
                    ],
                    "media": {"rId1": ("image1.png", PNG_1X1)},
                },
                "Second": {
                    "anchors": [one_cell("rId1", (2, 2))],
                    "media": {"rId1": ("image2.png", PNG_OTHER)},
                },
            },
        )
        excel = _load(data)
        recorder = Recorder()
        report = asyncio.run(excel.transform_images_to_str(recorder))

        assert [cell.a1 for _, cell in recorder.calls] == ["A4", "A1", "C3"]
        assert [(w.sheet_name, w.cell.a1) for w in report.writes] == [
            ("First", "A4"),
            ("First", "A1"),
            ("Second", "C3"),
        ]
        assert report.count == 3
        assert excel.book["Plain"]["A1"].value == "x"

    def test_sync_callback_is_accepted(self, data_sheet: bytes):
        excel = _load(data_sheet)
        asyncio.run(excel.transform_images_to_str(lambda file, cell: file.name))
        assert excel.get_data_by_sheet_name("Data")[2][1] == "image1.png"

    def test_rows_beyond_grid_are_created(self):
        data = make_xlsx(
            {"Data": {(0, 0): "only cell"}},
            {
                "Data": {
                    "anchors": [one_cell("rId1", (20, 9))],
                    "media": {"rId1": ("image1.png", PNG_1X1)},
                }
            },
        )
        excel = _load(data)
        asyncio.run(excel.transform_images_to_str(Recorder(URL)))
        grid = excel.get_data_by_sheet_name("Data")
        assert len(grid) == 21
        assert grid[20][9] == URL
        assert grid[0][0] == "only cell"

    def test_engine_can_be_used_directly(self, data_sheet: bytes):
        excel = _load(data_sheet)
        report = asyncio.run(CellRewriteEngine().transform(excel, Recorder(URL)))
        assert report.writes[0].value == URL

    def test_result_starting_with_equals_is_written_as_text(self, data_sheet: bytes):
        excel = _load(data_sheet)
        asyncio.run(excel.transform_images_to_str(lambda file, cell: "=cdn/x.png"))

        cell = excel.book["Data"]["B3"]
        assert cell.value == "=cdn/x.png"
        assert cell.data_type == "s"

        reloaded = openpyxl.load_workbook(io.BytesIO(excel.export()))["Data"]["B3"]
        assert reloaded.value == "=cdn/x.png"
        assert reloaded.data_type == "s"


class TestTransformErrors:

    def test_non_string_result_aborts(self, data_sheet: bytes):
        excel = _load(data_sheet)

        async def returns_number(file, cell):
            return 123

        with pytest.raises(InvalidCallbackResultError):
            asyncio.run(excel.transform_images_to_str(returns_number))
        assert excel.get_data_by_sheet_name("Data")[2][1] is None

    def test_callback_exception_propagates(self, data_sheet: bytes):
        excel = _load(data_sheet)

        async def upload_fails(file, cell):
            raise ConnectionError("upload failed")

        with pytest.raises(ConnectionError, match="upload failed"):
            asyncio.run(excel.transform_images_to_str(upload_fails))

    def test_earlier_sheets_stay_rewritten(self):
        data = make_xlsx(
            {"Good": {}, "Bad": {}},
            {
                "Good": {
                    "anchors": [one_cell("rId1", (0, 0))],
                    "media": {"rId1": ("image1.png", PNG_1X1)},
                },
                "Bad": {
                    "anchors": [one_cell("rId1", (1, 1)), one_cell("rId1", (2, 2))],
                    "media": {"rId1": ("image2.png", PNG_OTHER)},
                },
            },
        )
        excel = _load(data)
        calls = []

        async def fails_on_second_sheet(file, cell):
            calls.append(cell)
            if len(calls) == 3:
                raise RuntimeError("boom")
            return URL

        with pytest.raises(RuntimeError):
            asyncio.run(excel.transform_images_to_str(fails_on_second_sheet))
        assert excel.book["Good"]["A1"].value == URL
        # The failing sheet is committed only once all its images succeed.
        assert excel.book["Bad"]["B2"].value is None

    def test_anchorless_media_aborts_before_any_callback(self):
        data = make_xlsx(
            {"Data": {}},
            {
                "Data": {
                    "anchors": [two_cell("rId1", (2, 1), (4, 3))],
                    "media": {
                        "rId1": ("image1.png", PNG_1X1),
                        "rId2": ("image2.png", PNG_OTHER),
                    },
                }
            },
        )
        excel = _load(data)
        recorder = Recorder(URL)
        with pytest.raises(ImageAnchorNotFoundError):
            asyncio.run(excel.transform_images_to_str(recorder))
        assert recorder.calls == []


class TestPlaceValue:

    def test_grows_rows_and_cells(self):
        grid = [["a"]]
        place_value(grid, CellCoordinate(row=3, col=2), "v")
        assert grid == [["a"], [], [], [None, None, "v"]]

    def test_overwrites_existing_cell(self):
        grid = [["a", "b"]]
        place_value(grid, CellCoordinate(row=0, col=1), "v")
        assert grid == [["a", "v"]]
