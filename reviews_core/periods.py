from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, timedelta
from typing import Iterable, List, Optional

import pandas as pd

from reviews_core.records import ReviewRecord, records_frame

PERIODS = ("daily", "weekly", "monthly")
FISCAL_YEAR_START_MONTH = 4


@dataclass(frozen=True)
class DerivedRecord(ReviewRecord):
    parsed_date: Optional[date] = None
    fiscal_year: str = ""
    period_start: Optional[date] = None
    period_key: str = ""


DERIVED_FIELDS = [f.name for f in fields(DerivedRecord)]
DATE_COLUMNS = ("parsed_date", "period_start")


def check_granularity(granularity: str) -> str:
    if granularity not in PERIODS:
        raise ValueError(f"Unknown period granularity {granularity!r}; expected one of {PERIODS}")
    return granularity


def expand_year(year: int, digits: int) -> int:
    if digits > 2:
        return year
    return 2000 + year if year < 50 else 1900 + year


def parse_day_first(date_raw: object) -> Optional[date]:
    """Parse `DD/MM/YY` or `DD/MM/YYYY`; None for anything unparsable."""
    if date_raw is None:
        return None
    parts = [p.strip() for p in str(date_raw).strip().split("/")]
    if len(parts) < 3:
        return None
    day_s, month_s, year_s = parts[0], parts[1], parts[2]
    if not all(p.isascii() and p.isdigit() for p in (day_s, month_s, year_s)):
        return None
    year = expand_year(int(year_s), len(year_s))
    try:
        return date(year, int(month_s), int(day_s))
    except ValueError:
        return None


def fiscal_year_start(d: date) -> int:
    return d.year if d.month >= FISCAL_YEAR_START_MONTH else d.year - 1


def fiscal_year_label(d: date) -> str:
    start = fiscal_year_start(d)
    return f"FY{start}-{str(start + 1)[-2:]}"


def period_start(d: date, granularity: str) -> date:
    check_granularity(granularity)
    if granularity == "daily":
        return d
    if granularity == "weekly":
        # Weeks start on Sunday; date.weekday() has Monday == 0.
        return d - timedelta(days=(d.weekday() + 1) % 7)
    return d.replace(day=1)


def period_label(start: date, granularity: str) -> str:
    check_granularity(granularity)
    if granularity == "monthly":
        return start.strftime("%b %Y")
    return start.strftime("%d/%m/%y")


def resolve(record: ReviewRecord, granularity: str = "monthly") -> DerivedRecord:
    check_granularity(granularity)
    base = {f.name: getattr(record, f.name) for f in fields(ReviewRecord)}
    parsed = parse_day_first(record.date_raw)
    if parsed is None:
        return DerivedRecord(**base)
    start = period_start(parsed, granularity)
    return DerivedRecord(
        **base,
        parsed_date=parsed,
        fiscal_year=fiscal_year_label(parsed),
        period_start=start,
        period_key=period_label(start, granularity),
    )


def derive_frame(records: Iterable[ReviewRecord], granularity: str = "monthly") -> pd.DataFrame:
    """Resolve every record and return the derived dataset as a DataFrame.

    Date columns are datetime64 so missing dates become NaT.
    """
    check_granularity(granularity)
    derived: List[DerivedRecord] = [resolve(r, granularity) for r in records]
    df = records_frame(derived, columns=DERIVED_FIELDS)
    for col in DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col], errors="coerce")
    return df
