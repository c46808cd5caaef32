from datetime import date, timedelta
from typing import Optional

from sqlalchemy import or_

RANGE_DAYS = {"week": 7, "month": 30}


def filter_date_range(query, column, date_range: Optional[str], today: Optional[date] = None):
    """Narrow ``query`` to today / the last 7 days / the last 30 days.

    Dates are stored as ISO strings, so string comparison orders them.
    """
    if not date_range:
        return query
    today = today or date.today()
    if date_range == "today":
        return query.filter(column == today.isoformat())
    days = RANGE_DAYS.get(date_range)
    if days is None:
        return query
    return query.filter(column >= (today - timedelta(days=days)).isoformat())


def filter_search(query, search: Optional[str], *columns):
    """Case-insensitive substring match against any of ``columns``."""
    if not search:
        return query
    term = f"%{search}%"
    return query.filter(or_(*[column.ilike(term) for column in columns]))


def today_iso() -> str:
    return date.today().isoformat()
