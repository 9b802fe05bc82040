"""Best-effort field extraction from loosely structured addresses and records.

None of these raise on odd input: absence of a match is ``None``/``""``.
"""

import html
import math
import re


_WHITESPACE_RE = re.compile(r"\s+")
_ZIP_RE = re.compile(r"\b\d{5}(?:-\d{4})?\b")
_STATE_ZIP_RE = re.compile(r"\b([A-Z]{2})\s+(?:\d{5}|[A-Z]\d[A-Z])")
_NUMERIC_STRIP_RE = re.compile(r"[\s,$€£¥]|CAD|USD|C\$|US\$", re.IGNORECASE)
_COUNTRY_SEGMENTS = {
    "usa",
    "us",
    "u.s.a.",
    "united states",
    "united states of america",
    "canada",
    "ca",
}


def norm_ws(value):
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def safe_text(value):
    return norm_ws(html.unescape(value or ""))


def _address_segments(address):
    parts = [norm_ws(part) for part in str(address).split(",")]
    parts = [part for part in parts if part]
    if len(parts) > 1 and parts[-1].lower() in _COUNTRY_SEGMENTS:
        parts = parts[:-1]
    return parts


def extract_city(address):
    if not address:
        return "Unknown"
    parts = _address_segments(address)
    if len(parts) < 2:
        return "Unknown"
    return parts[-2] or "Unknown"


def extract_state(address):
    if not address:
        return ""
    parts = _address_segments(address)
    if not parts:
        return ""
    final = parts[-1]
    match = _STATE_ZIP_RE.search(final)
    if match:
        return match.group(1)
    return final.split(" ")[0]


def extract_zip_code(address):
    if not address:
        return ""
    match = _ZIP_RE.search(str(address))
    return match.group(0) if match else ""


def extract_field_value(record, path):
    """Walk ``a.b.0.c`` style paths through nested dicts and lists."""

    if record is None or not path:
        return None
    current = record
    for segment in str(path).split("."):
        if isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
        if current is None:
            return None
    return current


def parse_numeric(raw):
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
        return value if math.isfinite(value) else None
    cleaned = _NUMERIC_STRIP_RE.sub("", str(raw))
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except (ValueError, OverflowError):
        return None
    return value if math.isfinite(value) else None


def parse_int(raw):
    value = parse_numeric(raw)
    if value is None:
        return None
    return int(value)


def address_locality(address):
    """(city, state) from a full "street, city, ST zip" address, else ("", "")."""

    if not address:
        return "", ""
    if len(_address_segments(address)) < 3:
        return "", ""
    return extract_city(address), extract_state(address)
