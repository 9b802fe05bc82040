from free_data_integration.adapters.county_web import (
    ADDRESS_RE,
    CountyWebsiteAdapter,
    header_key,
    property_from_text,
)
from free_data_integration.config import Settings
from free_data_integration.models import AdapterRequest
from free_data_integration.registry import lookup


def _config(name):
    return next(c for c in lookup("texas") if c.name == name)


def test_header_key():
    assert header_key(" Total  Appraised Value ") == "total_appraised_value"
    assert header_key("Owner(s)") == "owner_s"


def test_table_rows_are_mapped(fake_session, fake_response, fixture_text):
    session = fake_session(fake_response(text=fixture_text("dallas_search_table.html")))
    adapter = CountyWebsiteAdapter(_config("Dallas County"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Dallas, TX"))

    assert len(result.properties) == 2
    first, second = result.properties
    assert first.address == "1500 Marilla St, Dallas, TX 75201"
    assert (first.city, first.state, first.zip_code) == ("Dallas", "TX", "75201")
    assert first.owner_name == "CITY OF DALLAS"
    assert first.assessed_value == 12450000.0
    assert first.year_built == 1978
    assert first.property_type == "Commercial"
    assert second.address == "2200 Irving Blvd"
    assert (second.city, second.state) == ("Dallas", "TX")
    assert second.year_built is None

    _, _, kwargs = session.calls[0]
    assert "Mozilla" in kwargs["headers"]["User-Agent"]
    assert kwargs["params"] == {"q": "Dallas"}


def test_free_text_fallback(fake_session, fake_response, fixture_text):
    session = fake_session(fake_response(text=fixture_text("county_free_text.html")))
    adapter = CountyWebsiteAdapter(_config("Galveston County"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))

    addresses = [p.address for p in result.properties]
    assert addresses == ["812 Commerce Street, Houston, TX 77002", "9300 Industrial Way"]
    assert result.properties[0].assessed_value == 1250000.0
    assert result.properties[1].assessed_value == 875000.0
    assert result.properties[1].city == "Houston"


def test_output_is_capped(fake_session, fake_response):
    rows = "".join(f"<p>{n} Elm St</p>" for n in range(100, 160))
    session = fake_session(fake_response(text=f"<html><body>{rows}</body></html>"))
    adapter = CountyWebsiteAdapter(
        _config("Galveston County"), session=session, settings=Settings(scrape_limit=5)
    )
    result = adapter.adapt(AdapterRequest(location="Galveston, TX"))
    assert len(result.properties) == 5


def test_page_without_candidates_is_an_empty_result(fake_session, fake_response):
    session = fake_session(fake_response(text="<html><body>Please enable JavaScript</body></html>"))
    adapter = CountyWebsiteAdapter(_config("Galveston County"), session=session, settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Galveston, TX"))
    assert result.properties == ()
    assert "Galveston County" in result.message


def test_text_candidate_helpers_tolerate_garbage():
    assert property_from_text("", "", source="x", city="A", state="TX", property_type=None) is None
    assert ADDRESS_RE.search("no street here") is None
