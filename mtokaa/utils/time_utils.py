def format_age(age_ms: int) -> str:
    """Human-readable age of a cached snapshot: '45 sec', '12 min', '1 h 5 min'."""
    seconds = max(0, age_ms // 1000)
    if seconds < 60:
        return f"{seconds} sec"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min"
    hours, minutes = divmod(minutes, 60)
    return f"{hours} h {minutes} min" if minutes else f"{hours} h"
