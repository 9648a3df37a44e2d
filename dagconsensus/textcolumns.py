"""Side-by-side layout of several text blocks as tab-separated columns."""

from __future__ import annotations


def _lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def text_columns(*args: str) -> str:
    """Join text blocks side by side, padding each column to its widest line.

    Every cell is followed by a tab and every row by a newline. A final row
    made only of padding closes the output.
    """
    columns = [_lines(text) for text in args]
    widths = [max((len(line) for line in column), default=0) for column in columns]

    rows = []
    row = 0
    while True:
        exhausted = True
        cells = []
        for column, width in zip(columns, widths):
            if row < len(column):
                cells.append(column[row].ljust(width))
                exhausted = False
            else:
                cells.append(" " * width)
        rows.append("".join(cell + "\t" for cell in cells) + "\n")
        row += 1
        if exhausted:
            break
    return "".join(rows)