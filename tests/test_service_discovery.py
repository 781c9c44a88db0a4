import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from telco_reco.clients.service_discovery import discover_catalog_instance, get_catalog_service_url
from telco_reco.config.settings import Settings
from telco_reco.utils.exceptions import CatalogUnavailableError


def _nacos(instances):
    naming = AsyncMock()
    naming.list_instances.return_value = instances
    return SimpleNamespace(register_client=naming, group="DEFAULT_GROUP", service_cluster="DEFAULT")


def test_explicit_catalog_url_wins():
    settings = Settings(catalog_service_url="http://catalog.test/", nacos_enabled=True)
    assert asyncio.run(get_catalog_service_url(settings)) == "http://catalog.test"


def test_no_url_and_no_nacos():
    with pytest.raises(CatalogUnavailableError):
        asyncio.run(get_catalog_service_url(Settings(catalog_service_url=None, nacos_enabled=False)))


def test_discovery_picks_heaviest_healthy_instance():
    instances = [SimpleNamespace(ip="10.0.0.1", port=8080, weight=1.0),
                 SimpleNamespace(ip="10.0.0.2", port=8081, weight=3.0)]
    with patch("telco_reco.clients.service_discovery.get_nacos_client", return_value=_nacos(instances)):
        assert asyncio.run(discover_catalog_instance("telco-catalog-service")) == "http://10.0.0.2:8081"


def test_discovery_without_instances():
    with patch("telco_reco.clients.service_discovery.get_nacos_client", return_value=_nacos([])):
        with pytest.raises(CatalogUnavailableError):
            asyncio.run(discover_catalog_instance("telco-catalog-service"))


def test_discovery_without_naming_client():
    nacos = SimpleNamespace(register_client=None, group="DEFAULT_GROUP", service_cluster="DEFAULT")
    with patch("telco_reco.clients.service_discovery.get_nacos_client", return_value=nacos):
        with pytest.raises(CatalogUnavailableError):
            asyncio.run(discover_catalog_instance("telco-catalog-service"))
