from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from roster_desk.roster import Roster

MONTHS = [
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
]

WEEKDAYS = [
    ("Mon", "monday"),
    ("Tue", "tuesday"),
    ("Wed", "wednesday"),
    ("Thu", "thursday"),
    ("Fri", "friday"),
    ("Sat", "saturday"),
    ("Sun", "sunday"),
]
WEEKDAY_VALUES = [value for _, value in WEEKDAYS]

HOLIDAY_SPLIT_RE = re.compile(r"\r?\n|,")


def parse_holiday_lines(text: str) -> list[str]:
    """Split pasted holidays on newlines and commas. Dates are passed through as typed."""
    return [part.strip() for part in HOLIDAY_SPLIT_RE.split(text or "") if part.strip()]


def _current_month() -> str:
    return MONTHS[date.today().month - 1]


def _current_year() -> int:
    return date.today().year


@dataclass
class ScheduleRules:
    year: int = field(default_factory=_current_year)
    month: str = field(default_factory=_current_month)
    start_day: int = 1
    local_off_days: int = 2
    overseas_off_days: int = 2
    driver_percentage_cap: float = 0.5
    excluded_weekdays: list[str] = field(default_factory=lambda: ["friday"])
    public_holidays: list[str] = field(default_factory=list)

    def validate(self) -> list[str]:
        problems: list[str] = []
        if self.month not in MONTHS:
            problems.append(f"Unknown month: {self.month!r}")
        if not 1 <= int(self.start_day) <= 31:
            problems.append("Start day must be between 1 and 31")
        for label, value in (("Local", self.local_off_days), ("Overseas", self.overseas_off_days)):
            if not 0 <= int(value) <= 31:
                problems.append(f"{label} off days must be between 0 and 31")
        if not 0 <= float(self.driver_percentage_cap) <= 1:
            problems.append("Driver percentage cap must be between 0 and 1")
        unknown = [day for day in self.excluded_weekdays if day not in WEEKDAY_VALUES]
        if unknown:
            problems.append(f"Unknown weekday(s): {', '.join(unknown)}")
        return problems

    def toggle_weekday(self, weekday: str) -> None:
        if weekday not in WEEKDAY_VALUES:
            raise ValueError(f"Unknown weekday: {weekday!r}")
        if weekday in self.excluded_weekdays:
            self.excluded_weekdays = [day for day in self.excluded_weekdays if day != weekday]
        else:
            self.excluded_weekdays = self.excluded_weekdays + [weekday]

    def add_holiday(self, value: str) -> None:
        value = (value or "").strip()
        if not value:
            return
        self.public_holidays = sorted(set(self.public_holidays) | {value})

    def add_holidays_from_text(self, text: str) -> None:
        for value in parse_holiday_lines(text):
            self.add_holiday(value)

    def remove_holiday(self, value: str) -> None:
        self.public_holidays = [day for day in self.public_holidays if day != value]

    def clear_holidays(self) -> None:
        self.public_holidays = []


def build_request_payload(roster: Roster, rules: ScheduleRules) -> dict[str, Any]:
    return {
        "year": int(rules.year),
        "month": rules.month,
        "start_day": int(rules.start_day),
        "employees": roster.to_request_employees(),
        "public_holidays": list(rules.public_holidays),
        "excluded_weekdays": list(rules.excluded_weekdays),
        "local_off_days": int(rules.local_off_days),
        "overseas_off_days": int(rules.overseas_off_days),
        "driver_percentage_cap": float(rules.driver_percentage_cap),
    }
