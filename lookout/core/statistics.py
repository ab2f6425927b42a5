"""
Published-files statistics report (daily, weekly, monthly counts + raw data).
"""

import csv
import io
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence

from lookout.models import FileStatus, FileStatusRecord

NO_PUBLISHED_FILES = "No published files available to generate a report."


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def count_by_period(records: Iterable[FileStatusRecord]) -> Dict[str, Counter]:
    daily: Counter = Counter()
    weekly: Counter = Counter()
    monthly: Counter = Counter()
    for record in records:
        day = record.last_updated.date()
        daily[day] += 1
        weekly[week_start(day)] += 1
        monthly[day.replace(day=1)] += 1
    return {"Daily": daily, "Weekly": weekly, "Monthly": monthly}


def build_summary_rows(records: Sequence[FileStatusRecord]) -> List[dict]:
    counts = count_by_period(records)
    rows = [
        {"period": "Daily", "date": day.isoformat(), "count": n}
        for day, n in sorted(counts["Daily"].items())
    ]
    rows += [
        {"period": "Weekly", "date": f"Week of {monday.isoformat()}", "count": n}
        for monday, n in sorted(counts["Weekly"].items())
    ]
    rows += [
        {"period": "Monthly", "date": first.strftime("%b %Y"), "count": n}
        for first, n in sorted(counts["Monthly"].items())
    ]
    return rows


def _to_csv(fieldnames: List[str], rows: List[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def build_statistics_report(records: Sequence[FileStatusRecord]) -> str | None:
    """
    CSV report over the published records, or None if there are none.
    """
    published = [record for record in records if record.status == FileStatus.PUBLISHED]
    if not published:
        return None

    summary_csv = _to_csv(["period", "date", "count"], build_summary_rows(published))
    raw_csv = _to_csv(
        ["period", "fileName", "publishedDate", "source"],
        [
            {
                "period": "Raw Data",
                "fileName": record.name,
                "publishedDate": record.last_updated.isoformat(),
                "source": record.source,
            }
            for record in published
        ],
    )
    return f"STATISTICS SUMMARY\n{summary_csv}\nRAW PUBLISHED DATA\n{raw_csv}"
