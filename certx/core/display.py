"""Display helpers."""


def truncate_hash(value: str, start: int = 6, end: int = 4) -> str:
    """0x12ab...ef90 style shortening; short values are returned untouched."""
    if len(value) <= start + end:
        return value
    return f"{value[:start]}...{value[-end:]}"
