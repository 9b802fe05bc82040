from free_data_integration.adapters.openstreetmap import (
    NOMINATIM_URL,
    OpenStreetMapAdapter,
    city_query,
    ql_literal,
)
from free_data_integration.config import Settings
from free_data_integration.models import AdapterRequest
from free_data_integration.registry import get_source


ELEMENTS = {
    "elements": [
        {
            "type": "way",
            "id": 101,
            "center": {"lat": 29.75, "lon": -95.35},
            "tags": {
                "landuse": "industrial",
                "addr:housenumber": "7000",
                "addr:street": "Navigation Blvd",
                "addr:city": "Houston",
                "addr:state": "TX",
                "addr:postcode": "77011",
                "name": "Navigation Yard",
            },
        },
        {"type": "way", "id": 102, "tags": {"building": "warehouse"}},
        {"type": "node", "id": 103, "lat": 29.7, "lon": -95.4, "tags": {"building": "commercial"}},
    ]
}


def test_ql_literal_strips_breakout_characters():
    assert ql_literal('Houston"];out;') == "Houstonout"
    assert '"Houston"' in city_query("Houston")
    assert "out center;" in city_query("Houston")


def test_city_query_elements_are_mapped(fake_session, fake_response):
    session = fake_session(fake_response(payload=ELEMENTS))
    adapter = OpenStreetMapAdapter(get_source("openstreetmap"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))

    # the way without a center has no coordinates and is dropped
    assert len(result.properties) == 2
    first, second = result.properties
    assert first.address == "7000 Navigation Blvd"
    assert (first.city, first.state, first.zip_code) == ("Houston", "TX", "77011")
    assert first.property_type == "industrial"
    assert first.listing_url == "https://www.openstreetmap.org/way/101"
    assert first.coordinates.lat == 29.75
    assert second.address == "Unknown Street"
    assert second.city == "Houston"

    method, url, kwargs = session.calls[0]
    assert method == "POST"
    assert url == "https://overpass-api.de/api/interpreter"
    assert b'"addr:city"~"Houston",i' in kwargs["data"]


def test_radius_geocodes_then_queries_around(fake_session, fake_response):
    session = fake_session(
        fake_response(payload=[{"lat": "29.76", "lon": "-95.37"}]),
        fake_response(payload={"elements": []}),
    )
    adapter = OpenStreetMapAdapter(get_source("openstreetmap"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX", radius=2))

    assert result.properties == ()
    assert session.calls[0][1] == NOMINATIM_URL
    assert b"around:3218,29.76,-95.37" in session.calls[1][2]["data"]
