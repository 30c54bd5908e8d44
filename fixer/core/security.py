def redact_token(token: str | None, visible: int = 6) -> str:
    """Mask a viewer's bearer token before it is written to the logs."""
    if not token:
        return "<none>"
    if len(token) <= visible * 2:
        return "***"
    return f"{token[:visible]}***"
