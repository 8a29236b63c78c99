# app/store/memory.py
from __future__ import annotations

import copy
import re
from datetime import datetime
from typing import Dict, Iterable, Optional

from app.store.base import Grid, TabularStore

_DATE_LIKE = re.compile(r"^\s*(\d{1,2})/(\d{1,2})/(\d{4})\s*$")


class MemoryStore(TabularStore):
    """
    Process-local store. With ``infer_dates`` it behaves like a spreadsheet host:
    day-first date text written to a non-text column comes back as a datetime.
    """

    def __init__(self, infer_dates: bool = False) -> None:
        self.infer_dates = infer_dates
        self.grids: Dict[str, Grid] = {}
        self.writes: list[str] = []

    def read_grid(self, name: str) -> Optional[Grid]:
        grid = self.grids.get(name)
        return copy.deepcopy(grid) if grid is not None else None

    def write_grid(self, name: str, grid: Grid, text_columns: Iterable[int] = ()) -> None:
        text_idx = set(text_columns)
        stored: Grid = []
        for r, row in enumerate(grid):
            out = []
            for c, value in enumerate(row):
                if c in text_idx:
                    value = "" if value is None else str(value)
                elif self.infer_dates and r > 0:
                    value = _infer(value)
                out.append(value)
            stored.append(out)
        self.grids[name] = stored
        self.writes.append(name)


def _infer(value):
    if not isinstance(value, str):
        return value
    m = _DATE_LIKE.match(value)
    if not m:
        return value
    day, month, year = (int(g) for g in m.groups())
    try:
        return datetime(year, month, day)
    except ValueError:
        return value
