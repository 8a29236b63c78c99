# app/store/base.py
"""
TabularStore: the grid-of-cells capability the reconciliation core reads from and
writes to. Adapters only move whole grids (list of rows, first row = header);
the row/column and transposed views are derived here so every backend exposes
the same shape.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

Grid = List[List[Any]]

INFO_MARKER = "ℹ"
TRANSPOSED_CORNER = "Metric"


class StoreError(RuntimeError):
    """Raised by adapters when the backing store cannot be read or written."""


@dataclass
class Table:
    columns: List[str]
    rows: List[List[Any]] = field(default_factory=list)


@dataclass
class Transposed:
    column_keys: List[str]
    metric_rows: List[Tuple[str, List[Any]]] = field(default_factory=list)


def is_info_cell(value: Any) -> bool:
    return isinstance(value, str) and value.lstrip().startswith(INFO_MARKER)


def info_row(text: str) -> List[str]:
    return [f"{INFO_MARKER} {text}"]


class TabularStore(ABC):
    @abstractmethod
    def read_grid(self, name: str) -> Optional[Grid]:
        """Return every row of ``name`` (header first) or None when the table is absent."""

    @abstractmethod
    def write_grid(self, name: str, grid: Grid, text_columns: Iterable[int] = ()) -> None:
        """Replace ``name`` with ``grid``; cells in ``text_columns`` must be kept as plain text."""

    # -- row-per-record -----------------------------------------------------

    def get_table(self, name: str) -> Optional[Table]:
        grid = self.read_grid(name)
        if not grid:
            return None
        header = ["" if c is None else str(c).strip() for c in grid[0]]
        return Table(columns=header, rows=[list(r) for r in grid[1:]])

    def put_table(
        self,
        name: str,
        columns: Sequence[str],
        rows: Iterable[Sequence[Any]],
        text_columns: Sequence[str] = (),
    ) -> None:
        grid: Grid = [list(columns)] + [list(r) for r in rows]
        text_idx = [i for i, c in enumerate(columns) if c in set(text_columns)]
        self.write_grid(name, grid, text_columns=text_idx)

    # -- transposed ---------------------------------------------------------

    def get_transposed(self, name: str) -> Optional[Transposed]:
        grid = self.read_grid(name)
        if not grid:
            return None
        header = list(grid[0])[1:]
        keys = ["" if k is None else str(k).strip() for k in header]
        metric_rows = []
        for row in grid[1:]:
            if not row:
                continue
            label = "" if row[0] is None else str(row[0]).strip()
            values = list(row[1:1 + len(keys)])
            values += [None] * (len(keys) - len(values))
            metric_rows.append((label, values))
        return Transposed(column_keys=keys, metric_rows=metric_rows)

    def put_transposed(
        self,
        name: str,
        column_keys: Sequence[str],
        metric_rows: Iterable[Tuple[str, Sequence[Any]]],
    ) -> None:
        grid: Grid = [[TRANSPOSED_CORNER, *column_keys]]
        for label, values in metric_rows:
            grid.append([label, *values])
        # metric labels are the only column guaranteed to be text in this layout
        self.write_grid(name, grid, text_columns=[0])
