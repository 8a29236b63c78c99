"""Excel (XLSX) workbook backend: one worksheet per table."""

from __future__ import annotations

from pathlib import Path
from zipfile import BadZipFile
from typing import Iterable, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.store.base import Grid, StoreError, TabularStore

TEXT_FORMAT = "@"


class WorkbookStore(TabularStore):
    def __init__(self, filepath: str | Path) -> None:
        self.filepath = Path(filepath)

    def _load(self) -> Optional[Workbook]:
        if not self.filepath.exists():
            return None
        try:
            return load_workbook(self.filepath)
        except (InvalidFileException, BadZipFile, OSError, KeyError) as ex:
            raise StoreError(f"Cannot open workbook {self.filepath}: {ex}") from ex

    def read_grid(self, name: str) -> Optional[Grid]:
        wb = self._load()
        if wb is None or name not in wb.sheetnames:
            return None
        try:
            rows = [list(r) for r in wb[name].iter_rows(values_only=True)]
        finally:
            wb.close()
        # openpyxl pads every row to the sheet width; drop fully blank trailing rows
        while rows and all(v is None for v in rows[-1]):
            rows.pop()
        return rows

    def write_grid(self, name: str, grid: Grid, text_columns: Iterable[int] = ()) -> None:
        text_idx = set(text_columns)
        wb = self._load()
        if wb is None:
            wb = Workbook()
            # the default empty sheet is replaced by the first real table
            wb.remove(wb.active)

        index = None
        if name in wb.sheetnames:
            index = wb.sheetnames.index(name)
            wb.remove(wb[name])
        ws = wb.create_sheet(title=name, index=index)

        for r, row in enumerate(grid, start=1):
            for c, value in enumerate(row, start=1):
                if (c - 1) in text_idx:
                    cell = ws.cell(row=r, column=c, value="" if value is None else str(value))
                    cell.number_format = TEXT_FORMAT
                else:
                    ws.cell(row=r, column=c, value=value)

        # Auto-fit column widths (approximate)
        for col in ws.columns:
            max_len = max(len(str(cell.value or "")) for cell in col)
            ws.column_dimensions[col[0].column_letter].width = min(max_len + 2, 40)

        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        try:
            wb.save(self.filepath)
        except OSError as ex:
            raise StoreError(f"Cannot save workbook {self.filepath}: {ex}") from ex
