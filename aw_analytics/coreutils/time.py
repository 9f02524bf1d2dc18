import calendar
from datetime import datetime


def shift_months(dt: datetime, months: int) -> datetime:
    """Shift a datetime by whole calendar months, clamping the day to month end."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
