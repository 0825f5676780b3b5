# partim/models/shift.py
"""
Officer work shifts. end_time NULL means the shift is open.
The partial unique index allows at most one open shift per officer.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, Index
from partim.database import Base


class Shift(Base):
    __tablename__ = "shifts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    officer_id = Column(String(100), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime)
    cash_collected = Column(Float, default=0, nullable=False)
    tickets_issued = Column(Integer, default=0, nullable=False)
    notes = Column(Text)

    __table_args__ = (
        Index(
            "uq_shifts_open_per_officer",
            "officer_id",
            unique=True,
            postgresql_where=end_time.is_(None),
            sqlite_where=end_time.is_(None),
        ),
    )

    def __repr__(self):
        return f"<Shift {self.id} officer={self.officer_id} open={self.end_time is None}>"
