from __future__ import annotations

from urllib.parse import urljoin, urlparse

from pydantic import Field

from core.settings.base_settings import CartPilotBaseSettings


class SiteSettings(CartPilotBaseSettings):
    """
    The retail site the run drives.
    Loaded from .env with exact variable name matching.
    """

    base_url: str = Field(default="https://www.auchan.pt", alias="CARTPILOT_SITE_BASE_URL")
    expected_host: str = Field(default="auchan.pt", alias="CARTPILOT_SITE_EXPECTED_HOST")
    order_history_path: str = Field(default="/pt/historico-encomendas", alias="CARTPILOT_SITE_ORDER_HISTORY_PATH")
    cart_path: str = Field(default="/pt/carrinho-compras", alias="CARTPILOT_SITE_CART_PATH")
    delivery_path: str = Field(default="/pt/checkout/entrega", alias="CARTPILOT_SITE_DELIVERY_PATH")

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path)

    @property
    def order_history_url(self) -> str:
        return self.url_for(self.order_history_path)

    @property
    def cart_url(self) -> str:
        return self.url_for(self.cart_path)

    @property
    def delivery_url(self) -> str:
        return self.url_for(self.delivery_path)

    def is_site_url(self, url: str | None) -> bool:
        """True when ``url`` is on the expected host (or one of its subdomains)."""
        if not url:
            return False
        host = (urlparse(url).hostname or "").lower()
        expected = self.expected_host.lower()
        return host == expected or host.endswith("." + expected)
