"""
Date helpers for activity tracking.
Active days are compared as local calendar dates, not 24h windows.
"""
from datetime import datetime, date
from typing import Iterable, List, Optional, Union


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def now() -> datetime:
        return datetime.now()

    @staticmethod
    def today() -> date:
        return datetime.now().date()

    @staticmethod
    def to_local_date(value: Union[datetime, date, None]) -> Optional[date]:
        """
        Reduce a timestamp to its calendar date.

        Timezone-aware values are converted to local time first; naive values
        are already stored in local time.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone().replace(tzinfo=None)
            return value.date()
        return value

    @staticmethod
    def to_local_datetime(value: Optional[datetime]) -> Optional[datetime]:
        """Naive local datetime, as stored in the database"""
        if value is not None and value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @staticmethod
    def distinct_dates_desc(values: Iterable[Union[datetime, date, None]]) -> List[date]:
        """Unique calendar dates, most recent first"""
        dates = {DateService.to_local_date(v) for v in values}
        dates.discard(None)
        return sorted(dates, reverse=True)
