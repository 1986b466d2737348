"""
Table parser - turns raw driver rows into a rectangular table.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd


@dataclass
class Table:
    column_names: List[str]
    rows: List[List[Any]]
    nrows: int
    ncols: int

    def __post_init__(self):
        if self.nrows != len(self.rows):
            raise ValueError(f"nrows={self.nrows} but table has {len(self.rows)} rows")
        if self.ncols != len(self.column_names):
            raise ValueError(f"ncols={self.ncols} but table has {len(self.column_names)} columns")
        for index, row in enumerate(self.rows):
            if len(row) != self.ncols:
                raise ValueError(f"Row {index} has {len(row)} values, expected {self.ncols}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columnnames": list(self.column_names),
            "rows": [list(row) for row in self.rows],
            "nrows": self.nrows,
            "ncols": self.ncols,
        }


def empty_table() -> Table:
    """Placeholder shown for a table that returned no rows."""
    return Table(column_names=["NA"], rows=[["empty table"]], nrows=1, ncols=1)


def parse_rows(raw_rows: Sequence[Any], columns: Optional[Sequence[str]] = None) -> Table:
    """
    Normalize raw rows into a Table.

    Args:
        raw_rows: Row mappings, or row sequences when ``columns`` is given
        columns: Column names for sequence rows

    Returns:
        Table whose rows all have one value per column. Keys missing from
        a row mapping become None.
    """
    if not raw_rows:
        names = [str(c) for c in columns] if columns else []
        return Table(column_names=names, rows=[], nrows=0, ncols=len(names))

    df = pd.DataFrame(list(raw_rows), columns=list(columns) if columns else None, dtype=object)
    df = df.where(df.notna(), None)

    return Table(
        column_names=[str(c) for c in df.columns],
        rows=df.values.tolist(),
        nrows=len(df.index),
        ncols=len(df.columns),
    )
