"""Catalog adapter that reads menu items from the catalog service over HTTP."""

import httpx
import structlog

from ordering.catalog.port import CatalogLookup, MenuItemInfo
from ordering.exceptions import CatalogUnavailableError
from ordering.money import to_decimal

logger = structlog.get_logger(__name__)


class HttpCatalog(CatalogLookup):
    """Calls ``GET {base_url}/menus/{id}`` and reads ``name`` and ``price``."""

    def __init__(self, base_url: str, timeout: float = 2.0, client: httpx.Client | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def get_menu_item(self, menu_item_id: str) -> MenuItemInfo:
        url = f"{self.base_url}/menus/{menu_item_id}"
        try:
            response = self._client.get(url, timeout=self.timeout)
        except httpx.HTTPError as exc:
            logger.warning("Catalog request failed", url=url, error=str(exc))
            raise CatalogUnavailableError(f"Catalog request failed: {exc}") from exc

        if response.status_code == 404:
            return MenuItemInfo(menu_item_id=str(menu_item_id), exists=False)
        if response.status_code >= 400:
            raise CatalogUnavailableError(f"Catalog answered {response.status_code} for menu item {menu_item_id}")

        payload = response.json()
        data = payload.get("data", payload)
        return MenuItemInfo(
            menu_item_id=str(menu_item_id),
            exists=True,
            price=to_decimal(data["price"], "price"),
            name=data.get("name", ""),
        )
