from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5c1e7a92d4b0"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "sheet_rows",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sheet", sa.String(length=64), nullable=False),
        sa.Column("row_index", sa.Integer(), nullable=False),
        sa.Column(
            "cells",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_sheet_rows_id", "sheet_rows", ["id"])
    op.create_index("ix_sheet_rows_sheet", "sheet_rows", ["sheet"])
    op.create_unique_constraint(
        "uq_sheet_rows_sheet_row", "sheet_rows", ["sheet", "row_index"]
    )

def downgrade():
    op.drop_constraint("uq_sheet_rows_sheet_row", "sheet_rows", type_="unique")
    op.drop_index("ix_sheet_rows_sheet", table_name="sheet_rows")
    op.drop_index("ix_sheet_rows_id", table_name="sheet_rows")
    op.drop_table("sheet_rows")
