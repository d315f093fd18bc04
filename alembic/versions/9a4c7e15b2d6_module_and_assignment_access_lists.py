"""module and assignment access lists

Revision ID: 9a4c7e15b2d6
Revises: 5d8e2c41a7f3
Create Date: 2026-10-20 10:02:47.118530

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9a4c7e15b2d6'
down_revision: Union[str, Sequence[str], None] = '5d8e2c41a7f3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("modules") as batch_op:
        batch_op.add_column(sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()))
    with op.batch_alter_table("assignments") as batch_op:
        batch_op.add_column(sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()))

    op.create_table(
        "module_students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("module_id", sa.Integer(), sa.ForeignKey("modules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("module_id", "student_id", name="uq_module_students_module_student"),
    )
    op.create_index("ix_module_students_id", "module_students", ["id"])
    op.create_index("ix_module_students_module_id", "module_students", ["module_id"])
    op.create_index("ix_module_students_student_id", "module_students", ["student_id"])

    op.create_table(
        "assignment_students",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("assignment_id", "student_id", name="uq_assignment_students_assignment_student"),
    )
    op.create_index("ix_assignment_students_id", "assignment_students", ["id"])
    op.create_index("ix_assignment_students_assignment_id", "assignment_students", ["assignment_id"])
    op.create_index("ix_assignment_students_student_id", "assignment_students", ["student_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("assignment_students")
    op.drop_table("module_students")
    with op.batch_alter_table("assignments") as batch_op:
        batch_op.drop_column("is_private")
    with op.batch_alter_table("modules") as batch_op:
        batch_op.drop_column("is_private")
