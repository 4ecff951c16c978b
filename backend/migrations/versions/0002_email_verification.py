"""email verification and verified email change

Revision ID: 0002_email_verification
Revises: 0001_initial_schema
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_email_verification"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        # Accounts created before verification existed count as verified
        batch_op.add_column(
            sa.Column(
                "is_email_verified",
                sa.Boolean(),
                nullable=False,
                server_default=sa.true(),
            )
        )
        batch_op.add_column(
            sa.Column("email_verification_token", sa.String(length=64), nullable=True)
        )
        batch_op.add_column(
            sa.Column("email_verification_expires_at", sa.DateTime(), nullable=True)
        )
        batch_op.add_column(
            sa.Column("pending_email", sa.String(length=255), nullable=True)
        )
        batch_op.add_column(
            sa.Column("email_change_token", sa.String(length=64), nullable=True)
        )
        batch_op.add_column(
            sa.Column("email_change_expires_at", sa.DateTime(), nullable=True)
        )
        batch_op.create_index(
            batch_op.f("ix_users_email_verification_token"),
            ["email_verification_token"],
            unique=False,
        )
        batch_op.create_index(
            batch_op.f("ix_users_email_change_token"),
            ["email_change_token"],
            unique=False,
        )


def downgrade() -> None:
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_index(batch_op.f("ix_users_email_change_token"))
        batch_op.drop_index(batch_op.f("ix_users_email_verification_token"))
        batch_op.drop_column("email_change_expires_at")
        batch_op.drop_column("email_change_token")
        batch_op.drop_column("pending_email")
        batch_op.drop_column("email_verification_expires_at")
        batch_op.drop_column("email_verification_token")
        batch_op.drop_column("is_email_verified")
