import requests

from free_data_integration.adapters.transmission import (
    FALLBACK_SOURCE,
    LIVE_SOURCE,
    AesoTransmissionAdapter,
    fallback_facilities,
)
from free_data_integration.config import Settings
from free_data_integration.models import AdapterRequest


CALGARY = AdapterRequest(location="Calgary, AB")


def test_fallback_is_filtered_to_known_city():
    facilities = fallback_facilities("Calgary")
    assert facilities
    assert {f.city for f in facilities} == {"Calgary"}
    for facility in facilities:
        assert facility.source == FALLBACK_SOURCE
        assert facility.voltage_level.endswith("kV")
        assert facility.capacity_mva > 0
        assert facility.coordinates is not None


def test_fallback_for_unlisted_city_returns_everything():
    everything = fallback_facilities("Okotoks")
    assert len(everything) == len(fallback_facilities(""))
    assert len({f.city for f in everything}) > 1


def test_missing_key_uses_fallback_without_network(fake_session):
    session = fake_session()
    result = AesoTransmissionAdapter(session=session, settings=Settings()).adapt(CALGARY)
    assert result.properties
    assert all(p.source == FALLBACK_SOURCE for p in result.properties)
    assert "AESO API key not configured" in result.message
    assert session.calls == []


def test_live_failure_uses_fallback(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("AESO_SUB_KEY", "sub")
    for failure in (requests.ConnectionError("down"), fake_response(status_code=503)):
        result = AesoTransmissionAdapter(session=fake_session(failure), settings=Settings()).adapt(CALGARY)
        assert result.properties
        assert {p.source for p in result.properties} == {FALLBACK_SOURCE}
        assert "AESO API unavailable" in result.message


def test_live_asset_list(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("AESO_SUB_KEY", "sub")
    payload = {
        "return": [
            {
                "asset_ID": "CAL1",
                "asset_name": "Calgary Energy Centre",
                "asset_type": "SOURCE",
                "operating_status": "Active",
                "pool_participant_name": "Calpine",
            },
            {"asset_ID": "EDM1", "asset_name": "Edmonton Load", "asset_type": "SINK"},
        ]
    }
    session = fake_session(fake_response(payload=payload))
    result = AesoTransmissionAdapter(session=session, settings=Settings()).adapt(CALGARY)

    assert [p.address for p in result.properties] == ["Calgary Energy Centre (CAL1)"]
    prop = result.properties[0]
    assert prop.source == LIVE_SOURCE
    assert prop.property_type == "transmission_source"
    assert prop.state == "AB"

    method, url, kwargs = session.calls[0]
    assert url == "https://api.aeso.ca/report/v1.1/assetlist"
    assert kwargs["headers"]["Ocp-Apim-Subscription-Key"] == "sub"


def test_empty_live_list_falls_back(monkeypatch, fake_session, fake_response):
    monkeypatch.setenv("AESO_SUB_KEY", "sub")
    session = fake_session(fake_response(payload={"return": []}))
    result = AesoTransmissionAdapter(session=session, settings=Settings()).adapt(CALGARY)
    assert {p.source for p in result.properties} == {FALLBACK_SOURCE}
    assert "AESO returned no assets" in result.message
