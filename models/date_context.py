"""Anchored "current date" snapshot used to ground time-relative reasoning."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class DateContext:
    """
    Immutable date snapshot captured once at the start of a request.

    Attributes:
        iso_date: Calendar date as YYYY-MM-DD
        day_of_week: English weekday name, e.g. "Monday"
        current_year: Year of iso_date
        previous_year: current_year - 1
    """

    iso_date: str
    day_of_week: str
    current_year: int
    previous_year: int

    def __post_init__(self):
        year = date.fromisoformat(self.iso_date).year
        if self.current_year != year or self.previous_year != year - 1:
            raise ValueError(
                f"Inconsistent DateContext: {self.iso_date} / {self.current_year} / {self.previous_year}"
            )

    @classmethod
    def capture(cls, now: datetime | date | None = None) -> "DateContext":
        """Build a snapshot from `now` (defaults to the local clock)."""
        today = now or datetime.now()
        if isinstance(today, datetime):
            today = today.date()
        return cls(
            iso_date=today.isoformat(),
            day_of_week=today.strftime("%A"),
            current_year=today.year,
            previous_year=today.year - 1,
        )

    def describe(self) -> str:
        """One-line anchor sentence embedded in prompts."""
        return (
            f"Today is {self.day_of_week}, {self.iso_date}. "
            f"The current year is {self.current_year}; last year was {self.previous_year}."
        )
