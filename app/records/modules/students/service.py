from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from operator import attrgetter
from typing import TYPE_CHECKING

from sqlalchemy import or_

from app.records.modules.students.models import Student
from app.records.modules.students.parsers.csv import CsvRowError, parse_student_csv
from app.records.modules.students.utils import (
    normalize_sort,
    normalize_text,
    parse_gpa,
    validate_student_payload,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

EXPORT_HEADER = ("ID", "Name", "Email", "Major", "GPA")

EXCELLENT_GPA = 3.5
GOOD_GPA = 3.0
TOP_PERFORMERS_LIMIT = 5
MAX_PAGE_SIZE = 1000


class StudentNotFoundError(LookupError):
    pass


class DuplicateEmailError(ValueError):
    def __init__(self, email: str) -> None:
        super().__init__(f"Student with email {email} already exists")
        self.email = email


class InvalidPageRequest(ValueError):
    pass


@dataclass(frozen=True)
class Page:
    items: list[Student]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size > 0 else 0

    @property
    def has_prev(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


@dataclass(frozen=True)
class DashboardStats:
    total_students: int
    average_gpa: float
    excellent_students: int  # gpa >= 3.5
    good_students: int  # 3.0 <= gpa < 3.5
    satisfactory_students: int  # gpa < 3.0
    students_by_major: dict[str, int]
    top_performers: list[Student]


@dataclass
class ImportResult:
    created: int = 0
    errors: list[CsvRowError] = field(default_factory=list)

    @property
    def error_message(self) -> str | None:
        if not self.errors:
            return None
        return "Errors occurred: " + "; ".join(str(e) for e in self.errors)


# ---------- Paging ----------
def _check_page_request(page: int, size: int) -> None:
    if size <= 0:
        raise InvalidPageRequest(f"Page size must be positive (got {size}).")
    if size > MAX_PAGE_SIZE:
        raise InvalidPageRequest(f"Page size must not exceed {MAX_PAGE_SIZE} (got {size}).")
    if page < 0:
        raise InvalidPageRequest(f"Page index must not be negative (got {page}).")


def _ordering(sort_field: str) -> tuple:
    if sort_field == "id":
        return (Student.id.asc(),)
    return (getattr(Student, sort_field).asc(), Student.id.asc())


def _page_of(q, page: int, size: int, sort_field: str) -> Page:
    total = q.count()
    if page * size >= total:
        # Past the last row: no OFFSET query.
        return Page(items=[], page=page, size=size, total=total)
    items = q.order_by(*_ordering(sort_field)).offset(page * size).limit(size).all()
    return Page(items=items, page=page, size=size, total=total)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_students(s: "Session", page: int, size: int, sort_by: str | None = None) -> Page:
    """Unfiltered page of students, sorted and sliced in SQL."""
    _check_page_request(page, size)
    sort_field = normalize_sort(sort_by)
    logger.debug("Fetching all students - page: %s, size: %s, sortBy: %s", page, size, sort_field)

    result = _page_of(s.query(Student), page, size, sort_field)
    logger.debug("Found %s students", result.total)
    return result


def search_students(s: "Session", keyword: str, page: int, size: int, sort_by: str | None = None) -> Page:
    """Case-insensitive substring search on name or email, done in SQL."""
    _check_page_request(page, size)
    sort_field = normalize_sort(sort_by)
    keyword = normalize_text(keyword)
    logger.debug("Searching students with keyword: %r - page: %s, size: %s", keyword, page, size)

    like = f"%{_escape_like(keyword)}%"
    q = s.query(Student).filter(
        or_(Student.name.ilike(like, escape="\\"), Student.email.ilike(like, escape="\\"))
    )
    result = _page_of(q, page, size, sort_field)
    logger.debug("Found %s students matching keyword %r", result.total, keyword)
    return result


def _matches(
    student: Student,
    keyword: str,
    major: str,
    min_gpa: float | None,
    max_gpa: float | None,
) -> bool:
    if keyword and keyword not in student.name.lower() and keyword not in student.email.lower():
        return False
    if major and student.major.lower() != major:
        return False
    if min_gpa is not None and student.gpa < min_gpa:
        return False
    if max_gpa is not None and student.gpa > max_gpa:
        return False
    return True


def filter_students(
    s: "Session",
    keyword: str | None,
    major: str | None,
    min_gpa: float | None,
    max_gpa: float | None,
    page: int,
    size: int,
    sort_by: str | None = None,
) -> Page:
    """
    Keyword / major / GPA-range filter over the whole table.

    Filtering, sorting and slicing happen in memory; fine for a registry of a
    few thousand rows, not beyond.
    """
    _check_page_request(page, size)
    sort_field = normalize_sort(sort_by)
    keyword = normalize_text(keyword).lower()
    major = normalize_text(major).lower()
    logger.debug(
        "Filtering students - keyword: %r, major: %r, minGpa: %s, maxGpa: %s",
        keyword,
        major,
        min_gpa,
        max_gpa,
    )

    everyone = s.query(Student).order_by(Student.id.asc()).all()
    filtered = [st for st in everyone if _matches(st, keyword, major, min_gpa, max_gpa)]
    filtered.sort(key=attrgetter(sort_field))

    start = page * size
    return Page(items=filtered[start : start + size], page=page, size=size, total=len(filtered))


def all_majors(s: "Session") -> list[str]:
    rows = s.query(Student.major).distinct().all()
    return sorted({r[0] for r in rows if r[0]})


# ---------- CRUD ----------
def all_students(s: "Session") -> list[Student]:
    logger.debug("Fetching all students without pagination")
    return s.query(Student).order_by(Student.id.asc()).all()


def get_student(s: "Session", student_id: int) -> Student:
    student = s.get(Student, student_id)
    if student is None:
        logger.error("Student not found with id: %s", student_id)
        raise StudentNotFoundError(f"Student not found with id: {student_id}")
    return student


def email_exists(s: "Session", email: str) -> bool:
    return s.query(Student.id).filter(Student.email == email).first() is not None


def create_student(s: "Session", payload: dict) -> Student:
    """
    Create a student from an already validated payload.
    Raises DuplicateEmailError when another student has the email.
    """
    email = normalize_text(payload.get("email"))
    logger.debug("Creating new student with email: %s", email)
    if email_exists(s, email):
        logger.error("Student with email %s already exists", email)
        raise DuplicateEmailError(email)

    student = Student(
        name=normalize_text(payload.get("name")),
        email=email,
        major=normalize_text(payload.get("major")),
        gpa=parse_gpa(payload.get("gpa")),
    )
    s.add(student)
    s.flush()
    logger.info("Student created successfully with id: %s", student.id)
    return student


def update_student(s: "Session", student_id: int, payload: dict) -> Student:
    """
    Overwrite a student's fields. Keeping the student's own email is never a conflict.
    """
    logger.debug("Updating student with id: %s", student_id)
    student = get_student(s, student_id)

    new_email = normalize_text(payload.get("email"))
    if new_email != student.email and email_exists(s, new_email):
        logger.error("Cannot update: email %s already exists", new_email)
        raise DuplicateEmailError(new_email)

    student.name = normalize_text(payload.get("name"))
    student.email = new_email
    student.major = normalize_text(payload.get("major"))
    student.gpa = parse_gpa(payload.get("gpa"))
    s.flush()
    logger.info("Student updated successfully with id: %s", student.id)
    return student


def delete_student(s: "Session", student_id: int) -> None:
    logger.debug("Deleting student with id: %s", student_id)
    student = get_student(s, student_id)
    s.delete(student)
    s.flush()
    logger.info("Student deleted successfully with id: %s", student_id)


# ---------- Dashboard ----------
def compute_dashboard_stats(students: list[Student]) -> DashboardStats:
    total = len(students)
    average = sum(st.gpa for st in students) / total if total else 0.0

    excellent = sum(1 for st in students if st.gpa >= EXCELLENT_GPA)
    good = sum(1 for st in students if GOOD_GPA <= st.gpa < EXCELLENT_GPA)
    satisfactory = sum(1 for st in students if st.gpa < GOOD_GPA)

    by_major: dict[str, int] = {}
    for st in students:
        by_major[st.major] = by_major.get(st.major, 0) + 1

    # sorted() is stable: equal GPAs keep their input order
    top = sorted(students, key=attrgetter("gpa"), reverse=True)[:TOP_PERFORMERS_LIMIT]

    return DashboardStats(
        total_students=total,
        average_gpa=average,
        excellent_students=excellent,
        good_students=good,
        satisfactory_students=satisfactory,
        students_by_major=dict(sorted(by_major.items())),
        top_performers=top,
    )


def dashboard_stats(s: "Session") -> DashboardStats:
    logger.debug("Generating dashboard statistics")
    return compute_dashboard_stats(all_students(s))


# ---------- CSV ----------
def export_students_csv(students: list[Student]) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(EXPORT_HEADER)
    for st in students:
        w.writerow([st.id, st.name, st.email, st.major, st.gpa])
    return out.getvalue()


def import_students(s: "Session", file_bytes: bytes) -> ImportResult:
    """
    Create a student per CSV data row. A failing row is recorded and skipped;
    rows created before it stay created.
    Raises ValueError when the file is empty.
    """
    rows, errors = parse_student_csv(file_bytes)
    result = ImportResult(errors=list(errors))

    for r in rows:
        field_errors = validate_student_payload(r)
        if field_errors:
            result.errors.append(CsvRowError(r["row_number"], "; ".join(field_errors.values())))
            continue
        try:
            create_student(s, r)
        except DuplicateEmailError as e:
            result.errors.append(CsvRowError(r["row_number"], f"Duplicate email: {e.email}", numbered=False))
            continue
        result.created += 1

    result.errors.sort(key=attrgetter("row_number"))
    logger.info("Import completed: %s successful, %s errors", result.created, len(result.errors))
    return result
