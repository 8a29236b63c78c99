# app/store/sql.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Optional

import numpy as np
import pandas as pd
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import SheetRow
from app.store.base import Grid, StoreError, TabularStore


def _native(v: Any):
    """Convert pandas/numpy/datetime values into JSON-safe Python types."""
    if isinstance(v, pd.Timestamp):
        return None if pd.isna(v) else v.to_pydatetime().isoformat()
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, np.integer):
        return int(v)
    if isinstance(v, np.floating):
        return float(v)
    if isinstance(v, float) and v != v:
        return None
    return v


class SqlStore(TabularStore):
    """Sheets kept as ordered rows of JSON cells in ``sheet_rows``."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def read_grid(self, name: str) -> Optional[Grid]:
        try:
            with self._session_factory() as db:
                rows = db.execute(
                    select(SheetRow.cells)
                    .where(SheetRow.sheet == name)
                    .order_by(SheetRow.row_index.asc())
                ).scalars().all()
        except SQLAlchemyError as ex:
            raise StoreError(f"Failed to read sheet '{name}': {ex}") from ex
        if not rows:
            return None
        return [list(cells or []) for cells in rows]

    def write_grid(self, name: str, grid: Grid, text_columns: Iterable[int] = ()) -> None:
        text_idx = set(text_columns)
        payload: List[SheetRow] = []
        for r, row in enumerate(grid):
            cells = []
            for c, value in enumerate(row):
                if c in text_idx:
                    value = "" if value is None else str(value)
                cells.append(_native(value))
            payload.append(SheetRow(sheet=name, row_index=r, cells=cells))

        try:
            with self._session_factory() as db:
                db.execute(delete(SheetRow).where(SheetRow.sheet == name))
                db.add_all(payload)
                db.commit()
        except SQLAlchemyError as ex:
            raise StoreError(f"Failed to write sheet '{name}': {ex}") from ex
