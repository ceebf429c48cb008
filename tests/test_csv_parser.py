import pytest

from app.records.modules.students.parsers.csv import parse_student_csv


def test_header_is_skipped_and_rows_are_positional():
    rows, errors = parse_student_csv(b"Name,Email,Major,GPA\nAnn Lee, ann@example.com ,Physics, 3.25 \n")
    assert errors == []
    assert rows == [
        {"row_number": 2, "name": "Ann Lee", "email": "ann@example.com", "major": "Physics", "gpa": 3.25}
    ]


def test_header_only_file_yields_nothing():
    rows, errors = parse_student_csv(b"Name,Email,Major,GPA\n")
    assert rows == []
    assert errors == []


def test_empty_file_raises():
    with pytest.raises(ValueError, match="empty"):
        parse_student_csv(b"")


def test_bom_and_quoted_fields():
    data = '\ufeffName,Email,Major,GPA\n"Lee, Ann",ann@example.com,"Art, History",3.0\n'.encode("utf-8")
    rows, errors = parse_student_csv(data)
    assert errors == []
    assert rows[0]["name"] == "Lee, Ann"
    assert rows[0]["major"] == "Art, History"


def test_row_errors_carry_row_numbers():
    data = (
        b"Name,Email,Major,GPA\n"
        b"Short,row\n"
        b"Ann Lee,ann@example.com,Physics,three\n"
        b"Bo Li,bo@example.com,Physics,\n"
        b"Cy Po,cy@example.com,Physics,2.5\n"
    )
    rows, errors = parse_student_csv(data)
    assert [(e.row_number, e.message) for e in errors] == [
        (2, "Insufficient columns"),
        (3, "Invalid GPA format"),
        (4, "Invalid GPA format"),
    ]
    assert [r["row_number"] for r in rows] == [5]


def test_blank_rows_are_skipped_but_counted():
    rows, errors = parse_student_csv(b"Name,Email,Major,GPA\n\n,,,\nCy Po,cy@example.com,Physics,2.5\n")
    assert errors == []
    assert [r["row_number"] for r in rows] == [4]


def test_export_header_shifts_columns():
    data = b"ID,Name,Email,Major,GPA\n7,Ann Lee,ann@example.com,Physics,3.5\n8,Bo Li,bo@example.com,Physics\n"
    rows, errors = parse_student_csv(data)
    assert rows == [
        {"row_number": 2, "name": "Ann Lee", "email": "ann@example.com", "major": "Physics", "gpa": 3.5}
    ]
    assert [(e.row_number, e.message) for e in errors] == [(3, "Insufficient columns")]


def test_extra_columns_are_ignored():
    rows, errors = parse_student_csv(b"Name,Email,Major,GPA,Notes\nAnn Lee,ann@example.com,Physics,3.5,hello\n")
    assert errors == []
    assert rows[0]["gpa"] == 3.5
