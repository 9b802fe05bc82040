from free_data_integration.adapters.base import collect, map_records
from free_data_integration.adapters.county_api import CountyApiAdapter, map_record, records_from_payload
from free_data_integration.config import Settings
from free_data_integration.models import AdapterRequest, build_property
from free_data_integration.registry import lookup


def _harris():
    return next(c for c in lookup("Houston, TX") if c.name == "Harris County")


def test_records_from_payload_shapes():
    assert records_from_payload([{"a": 1}, "junk"]) == [{"a": 1}]
    assert records_from_payload({"results": [{"a": 1}]}) == [{"a": 1}]
    assert records_from_payload({"features": [{"attributes": {"a": 2}}]}) == [{"a": 2}]
    assert records_from_payload({"unexpected": True}) == []
    assert records_from_payload("nope") == []


def test_map_record_uses_field_map():
    config = _harris()
    prop = map_record(
        {
            "site_addr_1": "1001 Texas Ave, Houston, TX 77002",
            "owner_name": "ACME HOLDINGS",
            "appraised_val": "1,500,000",
            "market_val": 1750000,
            "state_class": "F1",
            "yr_built": "1985",
            "bldg_sqft": "22,000",
            "land_sqft": 87120,
        },
        config.field_map,
        source=config.key,
        default_state="TX",
    )
    assert prop.address == "1001 Texas Ave, Houston, TX 77002"
    assert prop.city == "Houston"
    assert prop.state == "TX"
    assert prop.zip_code == "77002"
    assert prop.owner_name == "ACME HOLDINGS"
    assert prop.assessed_value == 1500000.0
    assert prop.market_value == 1750000.0
    assert prop.property_type == "F1"
    assert prop.year_built == 1985
    assert prop.square_footage == 22000.0
    assert prop.lot_size_acres == 2.0
    assert prop.source == "harris_county"


def test_map_record_without_address_is_dropped():
    config = _harris()
    assert map_record({"owner_name": "X"}, config.field_map, source="harris_county") is None


def test_county_api_adapter_maps_results(fake_session, fake_response):
    session = fake_session(
        fake_response(
            payload={
                "results": [
                    {"site_addr_1": "1 Main St, Houston, TX 77002", "appraised_val": "$10"},
                    {"site_addr_1": "", "appraised_val": "$20"},
                    {"site_addr_1": "2 Main St, Houston, TX 77002", "appraised_val": None},
                ]
            }
        )
    )
    adapter = CountyApiAdapter(_harris(), session=session, settings=Settings(timeout_s=7.0))
    result = adapter.adapt(AdapterRequest(location="Houston, TX", property_type="industrial"))

    assert [p.address for p in result.properties] == [
        "1 Main St, Houston, TX 77002",
        "2 Main St, Houston, TX 77002",
    ]
    assert all(p.address for p in result.properties)
    assert "Harris County" in result.message

    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://www.hcad.org/api/property"
    assert kwargs["timeout"] == 7.0
    assert kwargs["params"]["address"] == "Houston"
    assert kwargs["params"]["property_type"] == "industrial"


def test_county_api_adapter_empty_payload(fake_session, fake_response):
    adapter = CountyApiAdapter(_harris(), session=fake_session(fake_response(payload=[])), settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))
    assert result.properties == ()
    assert result.message


def test_non_finite_values_become_missing(fake_session, fake_response):
    text = (
        '[{"site_addr_1": "1 Main St, Houston, TX 77001", "market_val": Infinity},'
        ' {"site_addr_1": "2 Main St, Houston, TX 77001", "yr_built": -Infinity, "bldg_sqft": NaN}]'
    )
    adapter = CountyApiAdapter(_harris(), session=fake_session(fake_response(text=text)), settings=Settings())
    result = adapter.adapt(AdapterRequest(location="Houston, TX"))

    assert [p.address for p in result.properties] == [
        "1 Main St, Houston, TX 77001",
        "2 Main St, Houston, TX 77001",
    ]
    assert result.properties[0].market_value is None
    assert result.properties[1].year_built is None
    assert result.properties[1].square_footage is None


def test_one_unconvertible_record_keeps_the_rest():
    def convert(row):
        if row == "bad":
            raise OverflowError("cannot convert float infinity to integer")
        return build_property(address=row, city="Houston", state="TX", source="harris_county")

    kept = collect(map_records(["1 Main St", "bad", "2 Main St"], convert, "Harris County"))
    assert [p.address for p in kept] == ["1 Main St", "2 Main St"]
