import httpx
import pytest

from app.core.exceptions import GeocodingException
from app.infrastructure.geocoding import GoogleGeocoder


def geocoder_for(handler) -> GoogleGeocoder:
    return GoogleGeocoder(
        api_key="test-key",
        base_url="https://geocode.test/json",
        transport=httpx.MockTransport(handler),
    )


def test_resolve_returns_first_result():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={
            "status": "OK",
            "results": [
                {"geometry": {"location": {"lat": 48.8584, "lng": 2.2945}}},
                {"geometry": {"location": {"lat": 0, "lng": 0}}},
            ],
        })

    coordinates = geocoder_for(handler).resolve("Paris")

    assert (coordinates.lat, coordinates.lng) == (48.8584, 2.2945)
    assert seen == {"address": "Paris", "key": "test-key"}


def test_zero_results_is_unprocessable():
    geocoder = geocoder_for(lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))

    with pytest.raises(GeocodingException) as exc:
        geocoder.resolve("Nowhere")

    assert exc.value.status_code == 422
    assert exc.value.message == "Could not find location for the specified address."


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"status": "REQUEST_DENIED", "error_message": "bad key"}),
    httpx.Response(500, text="boom"),
    httpx.Response(200, text="not json"),
])
def test_service_failures_are_bad_gateway(response):
    with pytest.raises(GeocodingException) as exc:
        geocoder_for(lambda request: response).resolve("Paris")

    assert exc.value.status_code == 502


def test_transport_error_is_bad_gateway():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocodingException) as exc:
        geocoder_for(handler).resolve("Paris")

    assert exc.value.status_code == 502


@pytest.mark.parametrize("payload", [
    {"status": "OK", "results": [{"formatted_address": "Paris, France"}]},
    {"status": "OK", "results": [{"geometry": {}}]},
    {"status": "OK", "results": [{"geometry": {"location": {"lat": "north", "lng": 2.29}}}]},
    {"status": "OK", "results": ["Paris"]},
    [{"status": "OK"}],
    "OK",
])
def test_malformed_payloads_are_bad_gateway(payload):
    geocoder = geocoder_for(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(GeocodingException) as exc:
        geocoder.resolve("Paris")

    assert exc.value.status_code == 502
    assert exc.value.message == "Geocoding service unavailable, please try again later."
