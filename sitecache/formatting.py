"""Human-readable rendering of cache numbers."""

_SIZE_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with a binary unit, e.g. ``1536`` -> ``"1.50 KB"``."""
    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {_SIZE_UNITS[unit]}"


def format_percent(ratio: float, decimals: int = 1) -> str:
    return f"{ratio * 100:.{decimals}f}%"


def format_number(num: int) -> str:
    return f"{num:,}"


def format_duration(seconds: float) -> str:
    """Format an elapsed time, e.g. ``0.25`` -> ``"250ms"``, ``95`` -> ``"1m 35s"``."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"


def format_age(timestamp: float | None, now: float) -> str:
    """Describe how long ago *timestamp* was, or ``"Never"`` when unset."""
    if timestamp is None:
        return "Never"
    diff = now - timestamp
    if diff < 60:
        return "Just now"
    if diff < 3600:
        minutes = int(diff // 60)
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if diff < 86400:
        hours = int(diff // 3600)
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    days = int(diff // 86400)
    return f"{days} day{'' if days == 1 else 's'} ago"
