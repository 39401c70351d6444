from datetime import datetime
import pytz

UTC = pytz.UTC


def today():
    """
    Returns the current date in YYYY-MM-DD format using UTC timezone.
    Used for export filenames.
    """
    return datetime.now(UTC).strftime("%Y-%m-%d")


def utc_now_iso():
    return datetime.now(UTC).isoformat()
