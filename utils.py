import html
from datetime import datetime, timezone


def truncate_text(value: str | None, limit: int = 50) -> str:
    text = value or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def escape_html(value: object) -> str:
    return html.escape(str(value), quote=False)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
