"""SQLAlchemy model for the whisky table."""
from __future__ import annotations

from sqlalchemy import Column, Integer, String

from .session import Base


class WhiskyRow(Base):
    __tablename__ = "whisky"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted max row again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=True)
    origin = Column(String(100), nullable=True)
