"""Default adapter chains per organ, built from settings."""

from __future__ import annotations

import random

from terra.core.config.settings import Settings
from terra.domains.planetary.connectors.chain import FallbackChain
from terra.domains.planetary.connectors.eonet import EonetWildfireAdapter
from terra.domains.planetary.connectors.gfw import GlobalForestWatchAdapter
from terra.domains.planetary.connectors.http_client import HttpClient
from terra.domains.planetary.connectors.noaa import NoaaErddapOceanAdapter
from terra.domains.planetary.connectors.open_meteo import OpenMeteoAirQualityAdapter
from terra.domains.planetary.connectors.openweather import OpenWeatherAirQualityAdapter
from terra.domains.planetary.connectors.synthetic import SyntheticMetricsAdapter
from terra.domains.planetary.domain_logic.organ_models import OrganCategory


def build_default_chains(
    settings: Settings,
    http_client: HttpClient,
    rng: random.Random | None = None,
) -> dict[OrganCategory, FallbackChain]:
    """Wire every organ to its sources in priority order.

    * Lungs: NASA EONET > Global Forest Watch > synthetic
    * Veins: NOAA ERDDAP > synthetic
    * Skin:  OpenWeather > Open-Meteo > synthetic
    """
    timeout = settings.adapter_timeout_seconds
    return {
        OrganCategory.LUNGS: FallbackChain(
            OrganCategory.LUNGS,
            [
                EonetWildfireAdapter(http_client),
                GlobalForestWatchAdapter(http_client, api_key=settings.gfw_api_key),
                SyntheticMetricsAdapter(OrganCategory.LUNGS, rng),
            ],
            timeout_seconds=timeout,
            rng=rng,
        ),
        OrganCategory.VEINS: FallbackChain(
            OrganCategory.VEINS,
            [
                NoaaErddapOceanAdapter(
                    http_client,
                    dataset_id=settings.noaa_erddap_dataset,
                    ph_variable=settings.noaa_erddap_ph_variable,
                    base_url=settings.noaa_erddap_url,
                ),
                SyntheticMetricsAdapter(OrganCategory.VEINS, rng),
            ],
            timeout_seconds=timeout,
            rng=rng,
        ),
        OrganCategory.SKIN: FallbackChain(
            OrganCategory.SKIN,
            [
                OpenWeatherAirQualityAdapter(http_client, api_key=settings.openweather_api_key),
                OpenMeteoAirQualityAdapter(http_client),
                SyntheticMetricsAdapter(OrganCategory.SKIN, rng),
            ],
            timeout_seconds=timeout,
            rng=rng,
        ),
    }
