"""Wire format for pages and log entries.

Maps Page and LogEntry to the JSON documents exchanged with HTTP clients:

    Page     = {"title", "document", "updated", "message", "log"}
    LogEntry = {"id", "message", "date"}

Timestamps are RFC 3339 strings; UTC is written with a "Z" suffix. The "log"
field is always present, as an empty array when there is no history.
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from wikistore.pages.errors import DecodeError
from wikistore.pages.models import Page, validate_title
from wikistore.repository.models import LogEntry


def format_timestamp(value: datetime) -> str:
    """Encode a datetime as RFC 3339. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


# RFC 3339 date-time; separator and fraction forms fromisoformat may reject
RFC3339_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})?$"
)


def _normalize_rfc3339(value: str) -> str:
    """Rewrite an RFC 3339 string into the form datetime.fromisoformat reads.

    Fractional seconds are padded or truncated to microseconds and "Z" is
    spelled as "+00:00". Strings that do not match are returned unchanged.
    """
    match = RFC3339_PATTERN.match(value)
    if match is None:
        return value
    date, time, fraction, offset = match.groups()
    normalized = f"{date}T{time}"
    if fraction:
        normalized += "." + fraction[:6].ljust(6, "0")
    if offset:
        normalized += "+00:00" if offset in ("Z", "z") else offset
    return normalized


def parse_timestamp(text: Any, field: str = "date") -> datetime:
    """Decode an RFC 3339 timestamp into an aware datetime.

    Raises:
        DecodeError: If text is not a valid timestamp string
    """
    if not isinstance(text, str):
        raise DecodeError(f"expected timestamp string, got {type(text).__name__}", field)
    value = _normalize_rfc3339(text.strip())
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise DecodeError(f"invalid timestamp {text!r}", field)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def log_entry_to_dict(entry: LogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "message": entry.message,
        "date": format_timestamp(entry.date),
    }


def log_entry_from_dict(data: Any) -> LogEntry:
    """Build a LogEntry from its decoded JSON object.

    Raises:
        DecodeError: If a field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise DecodeError(f"log entry must be an object, got {type(data).__name__}", "log")
    for name in ("id", "message"):
        if not isinstance(data.get(name), str):
            raise DecodeError("must be a string", f"log.{name}")
    if "date" not in data:
        raise DecodeError("is required", "log.date")
    return LogEntry(
        id=data["id"],
        message=data["message"],
        date=parse_timestamp(data["date"], "log.date"),
    )


def page_to_dict(page: Page) -> Dict[str, Any]:
    return {
        "title": page.title,
        "document": page.document,
        "updated": format_timestamp(page.updated) if page.updated else None,
        "message": page.message,
        "log": [log_entry_to_dict(entry) for entry in page.log],
    }


def page_from_dict(data: Any, title: Optional[str] = None) -> Page:
    """Build a Page from its decoded JSON object.

    Only document-carrying fields are required to be well formed; absent
    optional fields take their defaults ("" for document and message, an
    empty log). A title passed by the caller (for instance from the request
    URL) takes precedence over the payload's.

    Raises:
        DecodeError: If the payload does not match the page wire format
    """
    if not isinstance(data, dict):
        raise DecodeError(f"page must be an object, got {type(data).__name__}")

    for name in ("title", "document", "message"):
        if name in data and not isinstance(data[name], str):
            raise DecodeError("must be a string", name)

    page_title = title if title is not None else data.get("title")
    if page_title is None:
        raise DecodeError("is required", "title")
    validate_title(page_title)

    updated = data.get("updated")
    log = data.get("log")
    if log is None:
        log = []
    if not isinstance(log, list):
        raise DecodeError(f"must be an array, got {type(log).__name__}", "log")

    return Page(
        title=page_title,
        document=data.get("document", ""),
        updated=parse_timestamp(updated, "updated") if updated is not None else None,
        message=data.get("message", ""),
        log=[log_entry_from_dict(entry) for entry in log],
    )


def encode_page(page: Page) -> str:
    return json.dumps(page_to_dict(page), ensure_ascii=False)


def decode_page(payload: Any, title: Optional[str] = None) -> Page:
    """Decode a JSON page payload (str or bytes).

    Raises:
        DecodeError: If payload is not JSON or not a page
    """
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"invalid JSON: {e}")
    return page_from_dict(data, title=title)


def encode_log(entries: Iterable[LogEntry]) -> str:
    """Encode a history feed as a JSON array of log entries."""
    items: List[Dict[str, Any]] = [log_entry_to_dict(entry) for entry in entries]
    return json.dumps(items, ensure_ascii=False)
