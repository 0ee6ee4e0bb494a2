"""
Excel image-to-cell tool — CLI entry point.

Usage:
    python main.py <excel_file> --list [--sheet <sheet_name>]
    python main.py <excel_file> [--output <out.xlsx>] [--image-dir <dir>]
                   [--base-url <url>] [--sheet <sheet_name>]

With --list, prints every embedded image and the cell range it is anchored
to, as JSON.

Otherwise stores every embedded image under --image-dir, writes the image's
URL (--base-url + file name, or a file:// URI) into the cell the image is
anchored to, and saves the rewritten workbook.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from config import IMAGE_BASE_URL, IMAGE_OUTPUT_DIR, LOG_LEVEL
from dto.image_location import ImageLocationMap, ImageLocationSummary
from errors import ExcelImageError
from utils.storage import DirectoryImageStore
from workbook import ExcelWorkbook

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Commands
# -------------------------------------------------------------------


def summarize(locations_map: ImageLocationMap) -> Dict[str, List[dict]]:
    """Drop image bytes so the map can be printed as JSON."""
    return {
        sheet_name: [
            ImageLocationSummary.of(loc).model_dump(by_alias=True)
            for loc in locations
        ]
        for sheet_name, locations in locations_map.items()
    }


def list_images(excel: ExcelWorkbook, sheets: Optional[List[str]]) -> str:
    locations_map = excel.resolve_image_locations(sheets)
    return json.dumps(summarize(locations_map), indent=2, ensure_ascii=False)


async def replace_images(
    excel: ExcelWorkbook,
    store: DirectoryImageStore,
    sheets: Optional[List[str]],
) -> int:
    report = await excel.transform_images_to_str(store, sheets)
    return report.count


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Replace images embedded in an Excel workbook with URLs "
        "written into the cells they are anchored to.",
    )
    parser.add_argument(
        "excel_file",
        help="Path to the .xlsx file",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Only print image locations as JSON; do not modify anything",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output workbook path (default: <input_name>_images.xlsx)",
    )
    parser.add_argument(
        "--image-dir",
        default=IMAGE_OUTPUT_DIR,
        help=f"Directory extracted images are written to (default: {IMAGE_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--base-url",
        default=IMAGE_BASE_URL,
        help="URL prefix for stored images (default: file:// URIs)",
    )
    parser.add_argument(
        "-s",
        "--sheet",
        default=None,
        help="Name of a single worksheet to process (default: all sheets)",
    )
    args = parser.parse_args()

    excel_path = args.excel_file
    if not os.path.isfile(excel_path):
        logger.error("File not found: %s", excel_path)
        sys.exit(1)

    sheets = [args.sheet] if args.sheet else None

    try:
        excel = ExcelWorkbook().load(excel_path)

        if args.list:
            print(list_images(excel, sheets))
            return

        output_path = args.output or f"{Path(excel_path).stem}_images.xlsx"
        store = DirectoryImageStore(args.image_dir, base_url=args.base_url)
        count = asyncio.run(replace_images(excel, store, sheets))
        excel.export(output_path)
    except ExcelImageError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    logger.info("%d image cell(s) rewritten, output written to %s", count, output_path)


if __name__ == "__main__":
    main()
