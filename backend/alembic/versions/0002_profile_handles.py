"""profile handles

Revision ID: 0002
Revises: 0001
Create Date: 2026-09-09
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    # Nullable: existing profiles pick a handle during onboarding.
    op.add_column("profiles", sa.Column("handle", sa.String(length=20), nullable=True))
    op.create_check_constraint("ck_profiles_handle_format", "profiles", "handle ~ '^[a-z0-9_]{3,20}$'")
    op.create_index("ix_profiles_handle", "profiles", ["handle"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_profiles_handle", table_name="profiles")
    op.drop_constraint("ck_profiles_handle_format", "profiles", type_="check")
    op.drop_column("profiles", "handle")
