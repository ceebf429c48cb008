from __future__ import annotations

import csv
import io
from dataclasses import dataclass

from app.records.modules.students.utils import normalize_text, parse_gpa

REQUIRED_COLUMNS = 4  # Name, Email, Major, GPA


@dataclass(frozen=True)
class CsvRowError:
    row_number: int
    message: str
    numbered: bool = True

    def __str__(self) -> str:
        if not self.numbered:
            return self.message
        return f"Row {self.row_number}: {self.message}"


def parse_student_csv(file_bytes: bytes) -> tuple[list[dict], list[CsvRowError]]:
    """
    Parse a student import CSV.

    Row 1 is a header and is skipped. Data rows are positional:
        Name, Email, Major, GPA
    A header whose first cell is "ID" (the export format) shifts the columns
    one to the right, so an exported file can be imported as-is.

    Returns:
      (rows, errors)
    Each row is a dict with name/email/major/gpa plus its 1-based `row_number`.
    Raises ValueError when the file holds no rows at all.
    """
    text = file_bytes.decode("utf-8-sig", errors="replace")
    all_rows = list(csv.reader(io.StringIO(text)))
    if not all_rows:
        raise ValueError("CSV file is empty.")

    header = all_rows[0]
    offset = 1 if header and normalize_text(header[0]).upper() == "ID" else 0

    rows: list[dict] = []
    errors: list[CsvRowError] = []

    for idx, raw in enumerate(all_rows[1:], start=2):  # 1 = header
        # Skip fully empty rows
        if all(normalize_text(v) == "" for v in raw):
            continue

        cells = raw[offset:]
        if len(cells) < REQUIRED_COLUMNS:
            errors.append(CsvRowError(idx, "Insufficient columns"))
            continue

        try:
            gpa = parse_gpa(cells[3])
            if gpa is None:
                raise ValueError("blank GPA")
        except ValueError:
            errors.append(CsvRowError(idx, "Invalid GPA format"))
            continue

        rows.append(
            {
                "row_number": idx,
                "name": normalize_text(cells[0]),
                "email": normalize_text(cells[1]),
                "major": normalize_text(cells[2]),
                "gpa": gpa,
            }
        )

    return rows, errors
