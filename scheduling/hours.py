from datetime import date, time
from typing import Dict, Optional, Tuple

DEFAULT_WORKING_HOURS = {
    0: (16, 18),
    1: (16, 18),
    2: (16, 18),
    3: (16, 18),
    4: (16, 18),
    5: (16, 18),
    6: (8, 10),
}


class WorkingHoursPolicy:
    """Weekly working windows keyed by weekday (Monday=0).

    Weekdays missing from the mapping are closed.
    """

    def __init__(self, hours: Optional[Dict[int, Tuple[int, int]]] = None):
        hours = DEFAULT_WORKING_HOURS if hours is None else hours
        self._windows = {}
        for weekday, (start_hour, end_hour) in hours.items():
            weekday = int(weekday)
            if not 0 <= weekday <= 6:
                raise ValueError(f"weekday must be 0-6, got {weekday}")
            if not 0 <= start_hour < end_hour <= 23:
                raise ValueError(f"invalid working hours for weekday {weekday}: {start_hour}-{end_hour}")
            self._windows[weekday] = (int(start_hour), int(end_hour))

    def window_for(self, day: date) -> Optional[Tuple[time, time]]:
        hours = self._windows.get(day.weekday())
        if hours is None:
            return None
        start_hour, end_hour = hours
        return time(start_hour, 0), time(end_hour, 0)
