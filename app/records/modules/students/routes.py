from __future__ import annotations

import io
from datetime import date

from flask import Blueprint, current_app, flash, redirect, render_template, request, send_file, url_for

from app.records.db import db_session
from app.records.modules.students.service import (
    DuplicateEmailError,
    InvalidPageRequest,
    StudentNotFoundError,
    all_majors,
    all_students,
    create_student,
    delete_student,
    export_students_csv,
    filter_students,
    get_student,
    import_students,
    list_students,
    update_student,
)
from app.records.modules.students.utils import SORTABLE_FIELDS, normalize_sort, normalize_text, parse_gpa, validate_student_payload
from app.records.rbac import require_permission

bp = Blueprint("students", __name__)

FORM_FIELDS = ("name", "email", "major", "gpa")


def _form_payload() -> dict:
    return {k: request.form.get(k) for k in FORM_FIELDS}


def _int_arg(name: str, default: int) -> int:
    raw = normalize_text(request.args.get(name))
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidPageRequest(f"{name} must be an integer.")


def _gpa_arg(name: str) -> float | None:
    try:
        return parse_gpa(request.args.get(name))
    except ValueError:
        raise InvalidPageRequest(f"{name} must be a number.")


def _parse_list_args() -> dict:
    return {
        "page": _int_arg("page", 0),
        "size": _int_arg("size", current_app.config.get("DEFAULT_PAGE_SIZE", 5)),
        "sort_by": normalize_sort(request.args.get("sortBy")),
        "keyword": normalize_text(request.args.get("keyword")),
        "major": normalize_text(request.args.get("major")),
        "min_gpa": _gpa_arg("minGpa"),
        "max_gpa": _gpa_arg("maxGpa"),
    }


def _not_found_redirect(e: StudentNotFoundError):
    current_app.logger.error("Student not found: %s", e)
    return redirect(url_for("students.students_list", error="notfound"))


# ---------- List ----------
@bp.get("")
@require_permission("students.view")
def students_list():
    s = db_session()
    try:
        args = _parse_list_args()
        filtering = bool(args["keyword"] or args["major"] or args["min_gpa"] is not None or args["max_gpa"] is not None)
        if filtering:
            page = filter_students(
                s,
                args["keyword"],
                args["major"],
                args["min_gpa"],
                args["max_gpa"],
                args["page"],
                args["size"],
                args["sort_by"],
            )
        else:
            page = list_students(s, args["page"], args["size"], args["sort_by"])
    except InvalidPageRequest as e:
        current_app.logger.warning("Rejected student list request: %s", e)
        return render_template("errors/400.html", message=str(e)), 400

    # Jinja cannot splat **kwargs in url_for; build query-preserving URLs here.
    filters_for_urls = {
        "size": args["size"],
        "sortBy": args["sort_by"],
        "keyword": args["keyword"],
        "major": args["major"],
        "minGpa": request.args.get("minGpa"),
        "maxGpa": request.args.get("maxGpa"),
    }
    filters_for_urls = {k: v for k, v in filters_for_urls.items() if v not in (None, "")}

    def page_url(n: int) -> str:
        return url_for("students.students_list", page=n, **filters_for_urls)

    def sort_url(field: str) -> str:
        return url_for("students.students_list", **{**filters_for_urls, "sortBy": field})

    return render_template(
        "students/list.html",
        students=page.items,
        page=page,
        filters=args,
        filtering=filtering,
        all_majors=all_majors(s),
        sortable_fields=SORTABLE_FIELDS,
        page_url=page_url,
        sort_url=sort_url,
        not_found=request.args.get("error") == "notfound",
    )


# ---------- New ----------
@bp.get("/new")
@require_permission("students.create")
def students_new_get():
    return render_template("students/form.html", student={}, errors={}, is_edit=False)


@bp.post("")
@require_permission("students.create")
def students_new_post():
    s = db_session()
    payload = _form_payload()

    errors = validate_student_payload(payload)
    if errors:
        current_app.logger.info("Student create rejected by validation: %s", errors)
        return render_template("students/form.html", student=payload, errors=errors, is_edit=False)

    try:
        student = create_student(s, payload)
    except DuplicateEmailError as e:
        s.rollback()
        return render_template("students/form.html", student=payload, errors={}, error_message=str(e), is_edit=False)
    s.commit()

    flash("Student created successfully!", "success")
    return redirect(url_for("students.student_detail", student_id=student.id))


# ---------- Detail ----------
@bp.get("/<int:student_id>")
@require_permission("students.view")
def student_detail(student_id: int):
    try:
        student = get_student(db_session(), student_id)
    except StudentNotFoundError as e:
        return _not_found_redirect(e)
    return render_template("students/view.html", student=student)


# ---------- Edit ----------
@bp.get("/edit/<int:student_id>")
@require_permission("students.edit")
def student_edit_get(student_id: int):
    try:
        student = get_student(db_session(), student_id)
    except StudentNotFoundError as e:
        return _not_found_redirect(e)
    return render_template("students/form.html", student=student, errors={}, is_edit=True)


@bp.post("/<int:student_id>")
@require_permission("students.edit")
def student_edit_post(student_id: int):
    s = db_session()
    payload = _form_payload()
    form_student = {**payload, "id": student_id}

    errors = validate_student_payload(payload)
    if errors:
        current_app.logger.info("Student %s update rejected by validation: %s", student_id, errors)
        return render_template("students/form.html", student=form_student, errors=errors, is_edit=True)

    try:
        update_student(s, student_id, payload)
    except StudentNotFoundError as e:
        s.rollback()
        return _not_found_redirect(e)
    except DuplicateEmailError as e:
        s.rollback()
        return render_template(
            "students/form.html", student=form_student, errors={}, error_message=str(e), is_edit=True
        )
    s.commit()

    flash("Student updated successfully!", "success")
    return redirect(url_for("students.student_detail", student_id=student_id))


# ---------- Delete ----------
@bp.post("/delete/<int:student_id>")
@require_permission("students.delete")
def student_delete(student_id: int):
    s = db_session()
    try:
        delete_student(s, student_id)
    except StudentNotFoundError as e:
        s.rollback()
        return _not_found_redirect(e)
    s.commit()

    flash("Student deleted successfully!", "success")
    return redirect(url_for("students.students_list"))


# ---------- Export ----------
@bp.get("/export")
@require_permission("students.export")
def students_export():
    students = all_students(db_session())
    data = export_students_csv(students).encode("utf-8")
    current_app.logger.info("Successfully exported %s students to CSV", len(students))
    return send_file(
        io.BytesIO(data),
        mimetype="text/csv",
        as_attachment=True,
        download_name=f"students_{date.today().isoformat()}.csv",
        max_age=0,
    )


# ---------- Import ----------
@bp.post("/import")
@require_permission("students.import")
def students_import():
    s = db_session()

    f = request.files.get("file")
    data = f.read() if f and f.filename else b""
    if not data:
        flash("Please select a CSV file to upload.", "danger")
        return redirect(url_for("students.students_list"))

    if not f.filename.lower().endswith(".csv"):
        flash("Only CSV files are allowed.", "danger")
        return redirect(url_for("students.students_list"))

    current_app.logger.debug("Importing students from CSV: %s", f.filename)
    try:
        result = import_students(s, data)
    except ValueError as e:
        s.rollback()
        flash(str(e), "danger")
        return redirect(url_for("students.students_list"))
    s.commit()

    if result.created:
        flash(f"Successfully imported {result.created} students.", "success")
    if result.error_message:
        flash(result.error_message, "danger")
    elif not result.created:
        flash("No student rows found in CSV file.", "warning")
    return redirect(url_for("students.students_list"))
