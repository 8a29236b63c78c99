from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base
from app.db.types import JSON_PAYLOAD


class SheetRow(Base):
    """
    One physical row of a tabular-store sheet. Row 0 is the header row;
    ``cells`` holds the row's values left to right.
    """

    __tablename__ = "sheet_rows"

    id = Column(Integer, primary_key=True, index=True)
    sheet = Column(String(64), nullable=False, index=True)
    row_index = Column(Integer, nullable=False)
    cells = Column(JSON_PAYLOAD, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("sheet", "row_index", name="uq_sheet_rows_sheet_row"),
    )
