from __future__ import annotations
import re
from datetime import datetime, timezone as dt_tz
from typing import Iterable, Mapping, Protocol
from zoneinfo import ZoneInfo

# ---------- voucher CSV ----------

class _Card(Protocol):
    code: str
    password: str
    created_at: datetime


def _as_text(value: str) -> str:
    # ="..." keeps spreadsheets from reading 16-digit codes as numbers
    return f'="{value}"'


def _stamp(dt: datetime, tz: ZoneInfo) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=dt_tz.utc)
    return dt.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def export_vouchers(cards: Iterable[_Card], header: str, tz_name: str = "UTC") -> bytes:
    """One header line, then `="code",="password",YYYY-MM-DD HH:MM:SS` per card."""
    tz = ZoneInfo(tz_name)
    lines = [header]
    for c in cards:
        lines.append(f"{_as_text(c.code)},{_as_text(c.password)},{_stamp(c.created_at, tz)}")
    return ("\n".join(lines) + "\n").encode("utf-8")


_CARD_LINE = re.compile(r'^="([^"]*)",="([^"]*)",')


def parse_voucher_export(data: bytes | str) -> list[tuple[str, str]]:
    """Read back (code, password) pairs from an export; header and junk lines are ignored."""
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines()[1:]:
        m = _CARD_LINE.match(line.strip())
        if m:
            pairs.append((m.group(1), m.group(2)))
    return pairs


# ---------- $-delimited settings exchange ----------

DELIMITER = "$"

DOMAIN_FIELDS = (
    "site_url",          # identity key
    "site_name",
    "site_keywords",
    "site_description",
    "template_dir",
    "html_dir",
    "ads_dir",
    "map_dir",
)

# older exports stop before map_dir
_ACCEPTED_WIDTHS = (len(DOMAIN_FIELDS) - 1, len(DOMAIN_FIELDS))


def dump_settings(entries: Mapping[str, Mapping[str, str]], fields: tuple[str, ...] = DOMAIN_FIELDS) -> str:
    out = []
    for _key, row in entries.items():
        out.append(DELIMITER.join(str(row.get(f, "") or "") for f in fields))
    return "".join(line + "\n" for line in out)


def parse_settings(
    text: str, fields: tuple[str, ...] = DOMAIN_FIELDS
) -> tuple[dict[str, dict[str, str]], list[int]]:
    """
    Parse an exchange file into {key: row}.
    Returns the entries plus 1-based numbers of lines that were skipped
    (wrong field count or empty key). Blank lines are neither.
    A key seen twice keeps the later line.
    """
    widths = _ACCEPTED_WIDTHS if fields == DOMAIN_FIELDS else (len(fields),)
    entries: dict[str, dict[str, str]] = {}
    skipped: list[int] = []
    for n, raw in enumerate(text.split("\n"), start=1):
        line = raw.rstrip("\r")
        if not line.strip():
            continue
        parts = line.split(DELIMITER)
        key = parts[0].strip()
        if len(parts) not in widths or not key:
            skipped.append(n)
            continue
        row = {f: "" for f in fields}
        row.update(zip(fields, (p.strip() for p in parts)))
        row[fields[0]] = key
        entries[key] = row
    return entries, skipped
