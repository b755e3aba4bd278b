"""
RequestNumberService -- ``EXE-<year>-<sequence>`` allocation.

Responsibility:
    Issues human-readable execution request numbers.  The sequence is
    scoped to a calendar year, zero-padded to four digits and strictly
    increasing within the year.

Architecture position:
    Kernel > Services -- called only by RequestIntakeService, inside the
    orchestrator-owned transaction.

Mechanism:
    One RequestNumberCounter row per year, locked with
    ``SELECT ... FOR UPDATE`` while incrementing.  The first allocation
    of a year seeds the counter from the number of requests already
    carrying that year's prefix, so on an append-only table the result
    is "count + 1" while staying unique under concurrent creation.

Failure modes:
    - IntegrityError on a concurrent first-of-year counter insert is
      absorbed with a savepoint rollback and a locked re-read.
    - Allocation is transactional: a rolled-back request returns its
      number.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_kernel.logging_config import get_logger
from budget_kernel.models.execution_request import ExecutionRequestModel
from budget_kernel.models.request_counter import RequestNumberCounter

logger = get_logger("services.request_numbering")


def format_request_number(prefix: str, year: int, sequence: int, width: int = 4) -> str:
    return f"{prefix}-{year:04d}-{sequence:0{width}d}"


class RequestNumberService:
    def __init__(self, session: Session, prefix: str = "EXE", width: int = 4):
        self._session = session
        self._prefix = prefix
        self._width = width

    def _locked_counter(self, year: int) -> RequestNumberCounter | None:
        return self._session.execute(
            select(RequestNumberCounter)
            .where(RequestNumberCounter.year == year)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _existing_count(self, year: int) -> int:
        pattern = f"{self._prefix}-{year:04d}-%"
        return self._session.execute(
            select(func.count())
            .select_from(ExecutionRequestModel)
            .where(ExecutionRequestModel.request_number.like(pattern))
        ).scalar_one()

    def next_number(self, year: int) -> str:
        """Allocate the next request number for ``year``."""
        counter = self._locked_counter(year)

        if counter is None:
            seed = self._existing_count(year)
            savepoint = self._session.begin_nested()
            try:
                counter = RequestNumberCounter(year=year, last_value=seed)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "request_counter_created", extra={"year": year, "seed": seed}
                )
            except IntegrityError:
                logger.debug("request_counter_race_retry", extra={"year": year})
                savepoint.rollback()
                counter = self._locked_counter(year)
                if counter is None:
                    raise

        counter.last_value += 1
        self._session.flush()

        number = format_request_number(
            self._prefix, year, counter.last_value, self._width
        )
        logger.debug(
            "request_number_allocated",
            extra={"year": year, "sequence": counter.last_value, "request_number": number},
        )
        return number
