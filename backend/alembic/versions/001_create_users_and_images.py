"""Create users and images tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Initial schema: `users` (login accounts) and `images` (metadata for
       objects held by the remote media host).

The application also runs create_all on startup, so a fresh database works
without running this; it exists so schema changes can be rolled forward on
databases that already hold data.

Rollback: downgrade() drops both tables (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "is_admin",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "images",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "title",
            sa.String(255),
            nullable=False,
            comment="Display title; 'Untitled' when none was supplied",
        ),
        sa.Column(
            "url",
            sa.String(2048),
            nullable=False,
            comment="Public URL on the remote media host",
        ),
        sa.Column(
            "remote_object_id",
            sa.String(255),
            nullable=False,
            comment="Object id on the remote media host, used for deletion",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("remote_object_id"),
    )

    # Listing is always newest first
    op.create_index(
        "idx_images_created_at",
        "images",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_images_created_at", table_name="images")
    op.drop_table("images")
    op.drop_table("users")
