from free_data_integration.adapters.places import GooglePlacesAdapter, YelpAdapter
from free_data_integration.config import Settings
from free_data_integration.models import AdapterRequest
from free_data_integration.registry import get_source


def test_google_places_maps_first_twenty(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "secret")
    results = [
        {
            "name": f"Warehouse {i}",
            "formatted_address": f"{100 + i} Industrial Blvd, Houston, TX 77002, USA",
            "place_id": f"pid{i}",
            "types": ["point_of_interest", "establishment"],
            "geometry": {"location": {"lat": 29.76, "lng": -95.36}},
        }
        for i in range(25)
    ]
    session = fake_session(fake_response(payload={"status": "OK", "results": results}))
    adapter = GooglePlacesAdapter(get_source("google_places"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))

    assert len(result.properties) == 20
    first = result.properties[0]
    assert first.address == "100 Industrial Blvd, Houston, TX 77002, USA"
    assert (first.city, first.state, first.zip_code) == ("Houston", "TX", "77002")
    assert first.source == "google_places"
    assert first.property_type == "commercial"
    assert first.coordinates.lat == 29.76
    assert first.listing_url == "https://maps.google.com/place/pid0"
    assert result.message == "Found 20 commercial properties via Google Places"

    _, _, kwargs = session.calls[0]
    assert kwargs["params"]["query"] == "commercial real estate industrial Houston, TX"
    assert kwargs["params"]["key"] == "secret"


def test_google_places_denied_status_is_a_failure(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("GOOGLE_PLACES_API_KEY", "secret")
    session = fake_session(fake_response(payload={"status": "REQUEST_DENIED", "error_message": "bad key"}))
    adapter = GooglePlacesAdapter(get_source("google_places"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))
    assert result.properties == ()
    assert result.message == "Google Places returned malformed data"


def test_yelp_uses_bearer_auth_and_radius_in_metres(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("YELP_API_KEY", "yk")
    payload = {
        "businesses": [
            {
                "name": "Gulf Coast Commercial",
                "url": "https://www.yelp.com/biz/gulf-coast",
                "categories": [{"title": "Commercial Real Estate"}],
                "location": {
                    "display_address": ["500 Travis St", "Houston, TX 77002"],
                    "city": "Houston",
                    "state": "TX",
                    "zip_code": "77002",
                },
                "coordinates": {"latitude": 29.76, "longitude": -95.36},
            },
            {"name": "No Address", "location": {"display_address": []}},
        ]
    }
    session = fake_session(fake_response(payload=payload))
    adapter = YelpAdapter(get_source("yelp"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX", radius=5))

    assert len(result.properties) == 1
    prop = result.properties[0]
    assert prop.address == "500 Travis St, Houston, TX 77002"
    assert prop.city == "Houston"
    assert prop.description == "Gulf Coast Commercial - Commercial Real Estate"

    _, _, kwargs = session.calls[0]
    assert kwargs["headers"]["Authorization"] == "Bearer yk"
    assert kwargs["params"]["radius"] == 8046
    assert kwargs["params"]["limit"] == 50


def test_yelp_radius_is_clamped(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("YELP_API_KEY", "yk")
    session = fake_session(fake_response(payload={"businesses": []}))
    YelpAdapter(get_source("yelp"), session=session, settings=Settings()).adapt(
        AdapterRequest(location="Houston, TX", radius=100)
    )
    assert session.calls[0][2]["params"]["radius"] == 40000
