import csv
import json
import tempfile
import unicodedata
from pathlib import Path
from typing import Iterable, List, Optional

from free_data_integration.models import PropertyData


CSV_FIELDS = (
    "address",
    "city",
    "state",
    "zip_code",
    "property_type",
    "source",
    "owner_name",
    "assessed_value",
    "market_value",
    "asking_price",
    "square_footage",
    "lot_size_acres",
    "year_built",
    "listing_url",
    "description",
    "lat",
    "lng",
)
FORMATS = ("json", "jsonl", "csv")


def neutralize_csv_field(value):
    """Prefix values a spreadsheet would evaluate as a formula."""

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    text = "" if value is None else str(value)
    if text.startswith(("=", "+", "-", "@", "\t", "\r")):
        return "'" + text
    return text


def _is_relative_to(path: Path, base: Path) -> bool:
    try:
        path.relative_to(base)
        return True
    except ValueError:
        return False


def safe_output_path(path_str: str, base: Optional[Path] = None) -> Path:
    """Resolve an output path under the working directory or the temp dir."""

    if not path_str:
        raise ValueError("output path required")
    normalized = unicodedata.normalize("NFKC", path_str)
    if ".." in normalized or ".." in Path(normalized).parts:
        raise ValueError("path traversal not allowed")
    if "\u202e" in normalized or "\u202d" in normalized:
        raise ValueError("unsafe unicode in path")

    base = (base or Path.cwd()).resolve()
    tmp_root = Path(tempfile.gettempdir()).resolve()
    raw_path = Path(normalized)
    roots = (base, tmp_root)
    candidate = raw_path if raw_path.is_absolute() else base / raw_path
    resolved = candidate.resolve()
    if not any(_is_relative_to(resolved, root) for root in roots):
        raise ValueError("path outside allowed roots")
    # Links below the allowed root; the root itself may be a link (/tmp on macOS).
    for parent in [candidate] + list(candidate.parents):
        if parent.exists() and parent.resolve() in roots:
            break
        if parent.is_symlink():
            raise ValueError("symlink paths not allowed")
    return resolved


def csv_row(prop: PropertyData) -> dict:
    data = prop.to_dict()
    coordinates = data.pop("coordinates", None) or {}
    data["lat"] = coordinates.get("lat")
    data["lng"] = coordinates.get("lng")
    return {field: neutralize_csv_field(data.get(field)) for field in CSV_FIELDS}


def write_properties(properties: Iterable[PropertyData], path: Path, fmt: str = "json") -> int:
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported format: {fmt}")
    rows: List[PropertyData] = list(properties)
    if fmt == "json":
        path.write_text(json.dumps([p.to_dict() for p in rows], indent=2), encoding="utf-8")
    elif fmt == "jsonl":
        with path.open("w", encoding="utf-8") as handle:
            for prop in rows:
                handle.write(json.dumps(prop.to_dict()) + "\n")
    else:
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for prop in rows:
                writer.writerow(csv_row(prop))
    return len(rows)
