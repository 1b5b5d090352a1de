from datetime import datetime


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return "0 ms"
    if seconds < 1:
        return f"{seconds * 1000:.1f} ms"
    if seconds < 60:
        return f"{seconds:.2f} s"
    return f"{seconds / 60:.2f} min"


def format_upload_timestamp(moment: datetime | None = None) -> str:
    """Locale-style date and time, e.g. ``10/18/2026, 09:15:02 AM``."""
    moment = moment or datetime.now()
    return moment.strftime("%m/%d/%Y, %I:%M:%S %p")
