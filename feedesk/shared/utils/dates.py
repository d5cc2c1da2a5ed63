"""Local calendar helpers; reports follow the server's local day and month."""

from datetime import date, datetime, time


def local_now() -> datetime:
    """Current time as an aware datetime in the server's local timezone."""
    return datetime.now().astimezone()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Start and end (inclusive) of a local calendar day."""
    tz = local_now().tzinfo
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start, end


def months_ago(moment: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the month's last day."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    for day in range(moment.day, 0, -1):
        try:
            return moment.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return moment.replace(year=year, month=month, day=1)
