from __future__ import annotations

from sqlalchemy import Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.records.models import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        Index("idx_students_major", "major"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    major: Mapped[str] = mapped_column(String(255), nullable=False)
    gpa: Mapped[float] = mapped_column(Float, nullable=False)  # 0.0 - 4.0 inclusive

    def __repr__(self) -> str:
        return f"<Student id={self.id} email={self.email!r}>"
