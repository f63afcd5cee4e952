"""Tests for the HTTP source adapters, driven through httpx.MockTransport."""

from __future__ import annotations

import asyncio
from urllib.parse import unquote

import httpx
import pytest

from terra.domains.planetary.connectors import MetricSourceAdapter, SourceUnavailableError
from terra.domains.planetary.connectors.eonet import EonetWildfireAdapter
from terra.domains.planetary.connectors.gfw import GlobalForestWatchAdapter
from terra.domains.planetary.connectors.http_client import (
    SharedHttpClient,
    as_float,
    has_real_key,
)
from terra.domains.planetary.connectors.noaa import NoaaErddapOceanAdapter
from terra.domains.planetary.connectors.open_meteo import (
    OpenMeteoAirQualityAdapter,
    us_aqi_to_index,
)
from terra.domains.planetary.connectors.openweather import OpenWeatherAirQualityAdapter
from terra.domains.planetary.domain_logic.organ_models import OrganCategory


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _fetch(adapter_factory, handler, locator):
    """Build an adapter on a mocked AsyncClient and fetch one snapshot."""
    async def _go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await adapter_factory(client).fetch(locator)
    return _run(_go())


def _json(payload, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)
    return handler


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    @pytest.mark.parametrize("key", ["", None, "your_api_key_here", "YOUR_KEY", "changeme"])
    def test_placeholder_keys_are_not_real(self, key):
        assert has_real_key(key) is False

    def test_real_key(self):
        assert has_real_key("a1b2c3d4") is True

    def test_as_float(self):
        assert as_float("3.5") == 3.5
        assert as_float(None) == 0.0
        assert as_float("n/a", default=-1.0) == -1.0


class TestSharedHttpClient:
    def _client(self):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(200, json=_EONET_EVENTS)

        return SharedHttpClient(transport=httpx.MockTransport(handler)), calls

    def test_adapters_fetch_through_it(self):
        shared, calls = self._client()

        async def _go():
            async with shared.session():
                snapshot = await EonetWildfireAdapter(shared).fetch("Amazon")
                assert shared.is_open
            return snapshot

        snapshot = _run(_go())
        assert snapshot.metrics.alert_count == 2
        assert calls == ["eonet.gsfc.nasa.gov"]

    def test_last_session_closes_the_client(self):
        shared, _ = self._client()

        async def _go():
            async with shared.session():
                async with shared.session():
                    await shared.get("https://example.org/a")
                assert shared.is_open
            assert not shared.is_open

        _run(_go())

    def test_reopens_after_close(self):
        shared, calls = self._client()

        async def _go():
            async with shared.session():
                await shared.get("https://example.org/a")
            async with shared.session():
                response = await shared.get("https://example.org/b")
                assert response.status_code == 200
            assert not shared.is_open

        _run(_go())
        assert calls == ["example.org", "example.org"]

    def test_close_without_use_is_a_no_op(self):
        shared, calls = self._client()

        async def _go():
            async with shared.session():
                pass
            await shared.aclose()

        _run(_go())
        assert not shared.is_open
        assert calls == []


# ---------------------------------------------------------------------------
# Lungs
# ---------------------------------------------------------------------------

_EONET_EVENTS = {
    "events": [
        {
            "title": "Wildfire - Para, Brazil",
            "geometry": [
                {"date": "2025-05-30T00:00:00Z", "coordinates": [-55.0, -5.0],
                 "magnitudeValue": 1000, "magnitudeUnit": "acres"}
            ],
        },
        {
            "title": "Wildfire - Rondonia, Brazil",
            "geometry": [{"date": "2025-05-29T00:00:00Z", "coordinates": [-63.0, -10.0]}],
        },
        {
            "title": "Wildfire - Alberta, Canada",
            "geometry": [{"date": "2025-05-29T00:00:00Z", "coordinates": [-115.0, 55.0]}],
        },
        {"title": "Broken event", "geometry": []},
    ]
}


class TestEonet:
    def test_counts_events_inside_region(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=_EONET_EVENTS)

        snap = _fetch(EonetWildfireAdapter, handler, "Amazon")

        assert seen["params"]["category"] == "wildfires"
        assert seen["params"]["status"] == "open"
        assert snap.category is OrganCategory.LUNGS
        assert snap.source == "NASA EONET"
        assert snap.synthetic is False
        assert snap.metrics.alert_count == 2
        # 1000 acres converted plus the 500 ha default for the unsized fire.
        assert snap.metrics.total_area_ha == round(1000 * 0.404686 + 500)
        assert snap.metrics.events[0].title == "Wildfire - Para, Brazil"

    def test_no_events_in_region_is_still_a_real_reading(self):
        snap = _fetch(EonetWildfireAdapter, _json(_EONET_EVENTS), "Indonesia")
        assert snap.metrics.alert_count == 0
        assert snap.synthetic is False

    def test_http_error_raises(self):
        with pytest.raises(SourceUnavailableError, match="HTTP 503"):
            _fetch(EonetWildfireAdapter, _json({}, status=503), "Amazon")

    def test_unexpected_shape_raises(self):
        with pytest.raises(SourceUnavailableError):
            _fetch(EonetWildfireAdapter, _json({"nope": 1}), "Amazon")

    def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(SourceUnavailableError, match="non-JSON"):
            _fetch(EonetWildfireAdapter, handler, "Amazon")

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("dns failure", request=request)

        with pytest.raises(SourceUnavailableError, match="ConnectError"):
            _fetch(EonetWildfireAdapter, handler, "Amazon")


class TestGlobalForestWatch:
    def test_parses_alert_counts(self):
        seen = {}

        def handler(request):
            seen["headers"] = request.headers
            seen["sql"] = request.url.params["sql"]
            return httpx.Response(200, json={"data": [{"alert_count": 842, "total_area_ha": 3120.5}]})

        snap = _fetch(lambda c: GlobalForestWatchAdapter(c, api_key="real-key"), handler, "Congo")

        assert seen["headers"]["x-api-key"] == "real-key"
        assert "iso = 'COD'" in seen["sql"]
        assert snap.metrics.alert_count == 842
        assert snap.metrics.total_area_ha == 3120.5
        assert snap.source == "Global Forest Watch"

    def test_missing_key_raises_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(SourceUnavailableError, match="not configured"):
            _fetch(lambda c: GlobalForestWatchAdapter(c, api_key=""), handler, "Amazon")

    def test_empty_rows_raise(self):
        with pytest.raises(SourceUnavailableError):
            _fetch(lambda c: GlobalForestWatchAdapter(c, api_key="k3y"), _json({"data": []}), "Amazon")


# ---------------------------------------------------------------------------
# Veins
# ---------------------------------------------------------------------------

_ERDDAP_TABLE = {
    "table": {
        "columnNames": ["pH", "time", "latitude", "longitude"],
        "rows": [
            [7.98, "2025-05-20T00:00:00Z", -18.1, 147.5],
            [8.04, "2025-05-28T00:00:00Z", -18.3, 147.7],
            [12.0, "2025-05-29T00:00:00Z", -18.3, 147.7],
            [None, "2025-05-30T00:00:00Z", -18.3, 147.7],
        ],
    }
}


class TestNoaaErddap:
    def test_takes_latest_plausible_ph(self):
        seen = {}

        def handler(request):
            seen["url"] = unquote(str(request.url))
            return httpx.Response(200, json=_ERDDAP_TABLE)

        snap = _fetch(
            lambda c: NoaaErddapOceanAdapter(c, dataset_id="reef_ph", base_url="https://erddap.test/tabledap"),
            handler,
            "Great Barrier Reef",
        )

        assert seen["url"].startswith("https://erddap.test/tabledap/reef_ph.json?")
        assert "time>=now-30days" in seen["url"]
        assert 'orderByMax("time")' in seen["url"]
        assert snap.category is OrganCategory.VEINS
        assert snap.metrics.ph == 8.04
        assert snap.metrics.acidification_level == "MODERATE"
        assert snap.metrics.latitude == -18.3

    def test_unconfigured_dataset_raises(self):
        with pytest.raises(SourceUnavailableError, match="not configured"):
            _fetch(lambda c: NoaaErddapOceanAdapter(c, dataset_id=""), _json({}), "Pacific Ocean")

    def test_missing_column_raises(self):
        payload = {"table": {"columnNames": ["time"], "rows": [["2025-05-30"]]}}
        with pytest.raises(SourceUnavailableError, match="pH"):
            _fetch(lambda c: NoaaErddapOceanAdapter(c, dataset_id="x"), _json(payload), "Pacific Ocean")

    def test_no_usable_rows_raise(self):
        payload = {"table": {"columnNames": ["pH"], "rows": [[None], [3.0]]}}
        with pytest.raises(SourceUnavailableError, match="no usable"):
            _fetch(lambda c: NoaaErddapOceanAdapter(c, dataset_id="x"), _json(payload), "Pacific Ocean")


# ---------------------------------------------------------------------------
# Skin
# ---------------------------------------------------------------------------

class TestOpenWeather:
    def test_geocodes_then_reads_pollution(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/geo/1.0/direct":
                return httpx.Response(200, json=[{"lat": 6.45, "lon": 3.39}])
            assert request.url.params["lat"] == "6.45"
            return httpx.Response(200, json={
                "list": [{"main": {"aqi": 4},
                          "components": {"pm2_5": 48.2, "pm10": 70.1, "no2": 33.0, "co": 410.5}}]
            })

        snap = _fetch(lambda c: OpenWeatherAirQualityAdapter(c, api_key="k3y"), handler, "Lagos")

        assert paths == ["/geo/1.0/direct", "/data/2.5/air_pollution"]
        assert snap.metrics.aqi == 4
        assert snap.metrics.pm25 == 48.2
        assert snap.metrics.co == 410.5
        assert snap.source == "OpenWeather"

    def test_failed_geocode_uses_known_coordinates(self):
        def handler(request):
            if request.url.path == "/geo/1.0/direct":
                return httpx.Response(200, json=[])
            assert request.url.params["lat"] == "28.6139"
            return httpx.Response(200, json={"list": [{"main": {"aqi": 5}, "components": {}}]})

        snap = _fetch(lambda c: OpenWeatherAirQualityAdapter(c, api_key="k3y"), handler, "Delhi")
        assert snap.metrics.aqi == 5
        assert snap.metrics.pm25 == 0.0
        assert snap.metrics.co is None

    def test_missing_key_raises(self):
        with pytest.raises(SourceUnavailableError):
            _fetch(lambda c: OpenWeatherAirQualityAdapter(c, api_key=""), _json({}), "Lagos")

    def test_unauthorized_raises(self):
        with pytest.raises(SourceUnavailableError, match="401"):
            _fetch(lambda c: OpenWeatherAirQualityAdapter(c, api_key="bad"), _json({}, 401), "Lagos")


class TestOpenMeteo:
    @pytest.mark.parametrize(
        ("us_aqi", "index"), [(0, 1), (50, 1), (51, 2), (100, 2), (150, 3), (200, 4), (201, 5), (450, 5)]
    )
    def test_us_aqi_normalisation(self, us_aqi, index):
        assert us_aqi_to_index(us_aqi) == index

    def test_reads_current_conditions(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "current": {"us_aqi": 160, "pm2_5": 55.5, "pm10": 80.0,
                            "nitrogen_dioxide": 40.0, "carbon_monoxide": 500.0}
            })

        snap = _fetch(OpenMeteoAirQualityAdapter, handler, "Beijing")

        assert seen["params"]["latitude"] == "39.9042"
        assert snap.metrics.aqi == 4
        assert snap.metrics.pm25 == 55.5
        assert snap.metrics.no2 == 40.0
        assert snap.source == "Open-Meteo"

    def test_missing_aqi_raises(self):
        with pytest.raises(SourceUnavailableError):
            _fetch(OpenMeteoAirQualityAdapter, _json({"current": {"pm2_5": 3.0}}), "Lagos")


def test_adapters_satisfy_protocol():
    client = httpx.AsyncClient(transport=httpx.MockTransport(_json({})))
    adapters = [
        EonetWildfireAdapter(client),
        GlobalForestWatchAdapter(client, api_key=""),
        NoaaErddapOceanAdapter(client, dataset_id=""),
        OpenWeatherAirQualityAdapter(client, api_key=""),
        OpenMeteoAirQualityAdapter(client),
    ]
    for adapter in adapters:
        assert isinstance(adapter, MetricSourceAdapter)
