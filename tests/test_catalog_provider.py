import asyncio
from pathlib import Path

import httpx
import pytest

from telco_reco.provider.catalog_provider import HttpCatalogProvider, YamlCatalogProvider
from telco_reco.schemas.catalog_schema import Category
from telco_reco.utils.exceptions import CatalogUnavailableError

SEED_CATALOG = Path(__file__).resolve().parent.parent / "data" / "catalog.yaml"


def test_seed_catalog_loads_only_active_items():
    items = asyncio.run(YamlCatalogProvider(str(SEED_CATALOG)).list_active_items())
    assert items
    assert all(item.is_active for item in items)
    assert len({item.id for item in items}) == len(items)
    assert "retention-winback" not in {item.id for item in items}


def test_yaml_catalog_parses_camel_case(tmp_path):
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "products:\n"
        "  - id: 7\n"
        "    category: voice\n"
        "    price: 30000\n"
        "    targetOffer: Voice Bundle\n"
        "    purchaseCount: 12\n",
        encoding="utf-8",
    )
    items = asyncio.run(YamlCatalogProvider(str(path)).list_active_items())
    assert items[0].id == "7"
    assert items[0].category == Category.VOICE
    assert items[0].target_offer == "Voice Bundle"
    assert items[0].purchase_count == 12


@pytest.mark.parametrize("content", [
    "products:\n  - id: a\n    category: spaceship\n    price: 1\n",
    "products: [\n",
])
def test_yaml_catalog_errors(tmp_path, content):
    path = tmp_path / "catalog.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(CatalogUnavailableError):
        asyncio.run(YamlCatalogProvider(str(path)).list_active_items())


def test_yaml_catalog_missing_file(tmp_path):
    with pytest.raises(CatalogUnavailableError):
        asyncio.run(YamlCatalogProvider(str(tmp_path / "missing.yaml")).list_active_items())


def test_http_catalog_reads_result_context():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/products/active"
        assert "X-Trace-ID" in request.headers
        return httpx.Response(200, json={
            "success": True, "code": "0", "message": "ok",
            "data": [
                {"id": 1, "category": "data", "price": 30000, "targetOffer": "Data Booster"},
                {"id": 2, "category": "combo", "price": 85000, "isActive": False},
            ],
        })

    provider = HttpCatalogProvider(base_url="http://catalog.test", transport=httpx.MockTransport(handler))
    items = asyncio.run(provider.list_active_items())
    assert [item.id for item in items] == ["1"]


@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(500),
    lambda request: httpx.Response(200, json={"success": False, "code": "E1", "message": "nope"}),
    lambda request: httpx.Response(200, text="garbage"),
])
def test_http_catalog_errors(handler):
    provider = HttpCatalogProvider(base_url="http://catalog.test", transport=httpx.MockTransport(handler))
    with pytest.raises(CatalogUnavailableError):
        asyncio.run(provider.list_active_items())
