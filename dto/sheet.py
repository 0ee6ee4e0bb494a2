from typing import Optional

from pydantic import BaseModel, ConfigDict


class Sheet(BaseModel):
    """
    One workbook sheet.  ``name`` is the user-facing key, ``id`` the
    workbook's ``sheetId`` used to address parts by convention.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    rel_id: Optional[str] = None  # r:id in workbook.xml
    part: str  # worksheet part path, e.g. "xl/worksheets/sheet1.xml"
