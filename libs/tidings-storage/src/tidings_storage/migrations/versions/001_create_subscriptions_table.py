"""Create the subscriptions table.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE subscriptions (
            id              UUID         PRIMARY KEY,
            email           TEXT         NOT NULL UNIQUE,
            name            TEXT         NOT NULL,
            subscribed_at   TIMESTAMPTZ  NOT NULL
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS subscriptions")
