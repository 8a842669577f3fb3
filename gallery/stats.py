"""
View and visitor statistics.

Each event keeps running totals plus a per-day bucket keyed by ISO date.
Charts read the daily buckets and roll them up into weeks (starting on
Monday), months or years.
"""
import calendar
from datetime import date, datetime, timedelta

UNITS = ('day', 'week', 'month', 'year')

# Upper bound on the number of days walked for one aggregation, about six years
MAX_RANGE_DAYS = 2500

VISIT_COOKIE_PREFIX = 'gallery_visit_'
VISIT_COOKIE_MAX_AGE = 30 * 24 * 60 * 60


def iso_day(d=None):
    if d is None:
        d = date.today()
    return d.isoformat()


def parse_day(day):
    return datetime.strptime(day, '%Y-%m-%d').date()


def add_days(day, days):
    return iso_day(parse_day(day) + timedelta(days=days))


def add_months(day, months):
    """Shift a date by whole months, clamping to the last day of the month."""
    d = parse_day(day)
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return iso_day(date(year, month, min(d.day, last)))


def date_range(start, end, max_days=MAX_RANGE_DAYS):
    """Inclusive list of ISO days from start to end, capped at max_days."""
    if not start or not end:
        return []

    days = []
    current = parse_day(start)
    last = parse_day(end)
    while current <= last and len(days) < max_days:
        days.append(iso_day(current))
        # date.max has no successor
        if current == last:
            break
        current += timedelta(days=1)
    return days


def group_key(day, unit):
    if unit == 'day':
        return day
    if unit == 'month':
        return day[:7]
    if unit == 'year':
        return day[:4]
    if unit == 'week':
        d = parse_day(day)
        return iso_day(d - timedelta(days=d.weekday()))
    raise ValueError(f"unknown unit: {unit}")


def default_range(today, unit):
    """Default (start, end) window shown for a chart unit."""
    if unit == 'week':
        return add_days(today, -7 * 7), today
    if unit == 'month':
        return add_months(today, -11), today
    if unit == 'year':
        return add_months(today, -4 * 12), today
    return add_days(today, -6), today


def visit_cookie_name(event_id):
    return f"{VISIT_COOKIE_PREFIX}{event_id}"


def is_new_visitor(cookie_value, today):
    """A visitor counts once per event per day."""
    return cookie_value != today


def record_view(event, day, new_visitor):
    """
    Count one view of an event on ``day``.

    Views always increase; visitors only when ``new_visitor`` is set.
    """
    stats = event.get('stats')
    if not isinstance(stats, dict):
        stats = {}
    bucket = stats.get(day) or {}
    bucket = {
        'views': int(bucket.get('views', 0)) + 1,
        'visitors': int(bucket.get('visitors', 0)),
    }

    event['views'] = int(event.get('views', 0)) + 1
    if new_visitor:
        event['visitors'] = int(event.get('visitors', 0)) + 1
        bucket['visitors'] += 1
    else:
        event.setdefault('visitors', 0)

    stats[day] = bucket
    event['stats'] = stats
    return event


def sum_stats(stats, keys):
    views = 0
    visitors = 0
    for key in keys:
        row = (stats or {}).get(key)
        if row:
            views += int(row.get('views', 0))
            visitors += int(row.get('visitors', 0))
    return {'views': views, 'visitors': visitors}


def last_n_days(today, n):
    return [add_days(today, -i) for i in range(n - 1, -1, -1)]


def aggregate(stats, start, end, unit='day'):
    """
    Roll daily buckets between start and end into groups of ``unit``.

    Returns labels sorted ascending with matching views/visitors series,
    a row per label, and the totals over the whole range.
    """
    if unit not in UNITS:
        raise ValueError(f"unknown unit: {unit}")

    stats = stats or {}
    groups = {}
    for day in date_range(start, end):
        key = group_key(day, unit)
        row = stats.get(day) or {}
        current = groups.setdefault(key, {'views': 0, 'visitors': 0})
        current['views'] += int(row.get('views', 0))
        current['visitors'] += int(row.get('visitors', 0))

    labels = sorted(groups)
    rows = [{'key': key, **groups[key]} for key in labels]

    return {
        'unit': unit,
        'from': start,
        'to': end,
        'labels': labels,
        'views': [groups[key]['views'] for key in labels],
        'visitors': [groups[key]['visitors'] for key in labels],
        'rows': rows,
        'totals': {
            'views': sum(r['views'] for r in rows),
            'visitors': sum(r['visitors'] for r in rows),
        },
    }
