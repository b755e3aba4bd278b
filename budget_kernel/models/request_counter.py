"""
Module: budget_kernel.models.request_counter
Responsibility: Per-year counter rows behind ``EXE-<year>-<sequence>``
    request numbers.  One row per calendar year; the row is locked
    (SELECT ... FOR UPDATE) while a number is allocated.
"""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import Base


class RequestNumberCounter(Base):
    __tablename__ = "request_number_counters"

    year: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<RequestNumberCounter {self.year}={self.last_value}>"
