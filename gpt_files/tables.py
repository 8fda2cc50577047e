"""Plain-text table rendering for list-style CLI output."""

from __future__ import annotations

import textwrap
from datetime import datetime
from typing import Any, List, Optional, Sequence


def _cell_lines(value: Any, width: int) -> List[str]:
    text = "" if value is None else str(value)
    lines: List[str] = []
    for raw_line in text.splitlines() or [""]:
        lines.extend(textwrap.wrap(raw_line, width, break_long_words=True) or [""])
    return lines


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    max_col_width: int = 40,
) -> str:
    """Render a bordered table; cells wider than ``max_col_width`` wrap."""
    header_cells = [_cell_lines(h, max_col_width) for h in headers]
    body_cells = [[_cell_lines(value, max_col_width) for value in row] for row in rows]

    widths = [max(len(line) for line in cell) for cell in header_cells]
    for row in body_cells:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], *(len(line) for line in cell))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def render_row(cells: List[List[str]]) -> List[str]:
        height = max(len(cell) for cell in cells)
        out = []
        for i in range(height):
            parts = [
                f" {(cell[i] if i < len(cell) else ''):<{widths[j]}} "
                for j, cell in enumerate(cells)
            ]
            out.append("|" + "|".join(parts) + "|")
        return out

    lines = [border, *render_row(header_cells), border]
    for row in body_cells:
        lines.extend(render_row(row))
    if body_cells:
        lines.append(border)
    return "\n".join(lines)


def format_size(num_bytes: Optional[int]) -> str:
    return f"{(num_bytes or 0) / 1024:.2f} KB"


def format_timestamp(epoch: Optional[int]) -> str:
    if not epoch:
        return ""
    return datetime.fromtimestamp(epoch).strftime("%Y-%m-%d %H:%M:%S")
