def redact(value: str | None, visible_chars: int = 6) -> str:
    """
    Redact an API key or user id before it reaches the logs.

    Short values are hidden entirely so that nothing meaningful leaks.
    """
    if not value:
        return "None"
    if len(value) <= visible_chars:
        return "***"
    return f"{value[:visible_chars]}***"
