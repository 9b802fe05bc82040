import csv
import json

import pytest

from free_data_integration.exporters import CSV_FIELDS, safe_output_path, write_properties
from free_data_integration.models import Coordinates, build_property


def _props():
    return [
        build_property(
            address="1 Main St",
            city="Houston",
            state="TX",
            source="harris_county",
            assessed_value=250000.0,
            coordinates=Coordinates(lat=29.76, lng=-95.37),
        ),
        build_property(address="2 Main St", city="Houston", state="TX", source="harris_county"),
    ]


def test_write_json(tmp_path):
    path = tmp_path / "out.json"
    assert write_properties(_props(), path, "json") == 2
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data[0]["coordinates"] == {"lat": 29.76, "lng": -95.37}
    assert data[1]["coordinates"] is None


def test_write_jsonl(tmp_path):
    path = tmp_path / "out.jsonl"
    write_properties(_props(), path, "jsonl")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["address"] for line in lines] == ["1 Main St", "2 Main St"]


def test_write_csv_flattens_coordinates(tmp_path):
    path = tmp_path / "out.csv"
    write_properties(_props(), path, "csv")
    with path.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.DictReader(handle))
    assert tuple(rows[0].keys()) == CSV_FIELDS
    assert rows[0]["lat"] == "29.76"
    assert rows[0]["assessed_value"] == "250000.0"
    assert rows[1]["lat"] == ""


def test_unknown_format_rejected(tmp_path):
    with pytest.raises(ValueError):
        write_properties(_props(), tmp_path / "out.xml", "xml")


@pytest.mark.parametrize(
    "bad",
    [
        "../outside.json",
        "..\\outside.json",
        "/etc/passwd",
        "safe/..\u2215outside.json",
        "report\u202ejson.exe",
        "",
    ],
)
def test_unsafe_output_paths_rejected(tmp_path, bad):
    with pytest.raises(ValueError):
        safe_output_path(bad, base=tmp_path)


def test_safe_output_path_resolves_under_base(tmp_path):
    assert safe_output_path("out.json", base=tmp_path) == (tmp_path / "out.json").resolve()
    absolute = tmp_path / "nested.csv"
    assert safe_output_path(str(absolute), base=tmp_path) == absolute.resolve()


def test_symlinked_output_directory_rejected(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    (tmp_path / "link").symlink_to(real, target_is_directory=True)
    with pytest.raises(ValueError, match="symlink"):
        safe_output_path("link/out.csv", base=tmp_path)
    assert safe_output_path("real/out.csv", base=tmp_path) == (real / "out.csv").resolve()


def test_csv_keeps_negative_numbers_numeric(tmp_path):
    path = tmp_path / "out.csv"
    prop = build_property(
        address="Sarcee 42S Substation",
        city="Calgary",
        state="AB",
        source="aeso_transmission_fallback",
        description="-5 MVA spare",
        coordinates=Coordinates(lat=50.9939, lng=-114.147),
    )
    write_properties([prop], path, "csv")
    with path.open(newline="", encoding="utf-8") as handle:
        row = next(csv.DictReader(handle))
    assert row["lng"] == "-114.147"
    assert row["description"] == "'-5 MVA spare"
