"""create users and students tables

Revision ID: 5e1a7c3b9d20
Revises:
Create Date: 2026-10-19 09:12:41.204117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5e1a7c3b9d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users and students tables."""
    # Check if tables already exist (databases bootstrapped by SEED_ON_START)
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = set(inspector.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(320), nullable=False, unique=True),
            sa.Column("password", sa.String(255), nullable=False),
            sa.Column("role", sa.String(16), nullable=False, server_default="USER"),
            sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    if "students" not in existing_tables:
        op.create_table(
            "students",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(100), nullable=False),
            sa.Column("email", sa.String(255), nullable=False, unique=True),
            sa.Column("major", sa.String(255), nullable=False),
            sa.Column("gpa", sa.Float(), nullable=False),
        )
        op.create_index("idx_students_major", "students", ["major"])


def downgrade() -> None:
    op.drop_index("idx_students_major", table_name="students")
    op.drop_table("students")
    op.drop_table("users")
