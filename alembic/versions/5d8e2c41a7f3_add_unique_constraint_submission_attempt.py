"""add unique constraint submission attempt

Revision ID: 5d8e2c41a7f3
Revises: 3f1c2a9d7b10
Create Date: 2026-10-20 09:14:31.402118

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '5d8e2c41a7f3'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    with op.batch_alter_table("assignment_submissions", recreate="always") as batch_op:
        batch_op.create_unique_constraint(
            "uq_submission_attempt",
            ["assignment_id", "student_id", "attempt_number"],
        )


def downgrade() -> None:
    """Downgrade schema."""
    with op.batch_alter_table("assignment_submissions", recreate="always") as batch_op:
        batch_op.drop_constraint(
            "uq_submission_attempt",
            type_="unique",
        )
