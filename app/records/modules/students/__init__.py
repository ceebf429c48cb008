"""
Student records module.

Scope:
- Students CRUD (list + detail + create/edit/delete)
- Keyword search and major/GPA filtering with pagination
- Dashboard statistics
- CSV export (admin) and CSV bulk import with per-row error reporting (admin)
"""
