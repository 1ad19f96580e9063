import os
import logging
from dataclasses import dataclass, field
from typing import Tuple

logger = logging.getLogger(__name__)

APPSTLE_API_BASE = "https://subscription-admin.appstle.com/api/external/v2"
SHOPIFY_SCOPES = "read_orders,write_orders,read_customers"

DEFAULT_ALLOWED_ORIGINS = (
    "https://honsama.com/",
    "https://honsama.com",
    "https://honsama.myshopify.com",
    "http://127.0.0.1:9292",
    "https://3ojk4ln0rxpnbfd5-72372584748.shopifypreview.com",
)


def _split_origins(value: str) -> Tuple[str, ...]:
    return tuple(o.strip() for o in value.split(",") if o.strip())


@dataclass(frozen=True)
class ProxyConfig:
    """Settings read once at startup and handed to create_app()."""

    appstle_api_key: str = ""
    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    app_url: str = ""
    allowed_origins: Tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    appstle_api_base: str = APPSTLE_API_BASE
    shopify_scopes: str = SHOPIFY_SCOPES
    rate_limit: str = "60 per minute"
    upstream_timeout: float = 15.0
    trusted_proxies: int = 0

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        origins = os.getenv("ALLOWED_ORIGINS")
        config = cls(
            appstle_api_key=os.getenv("APPSTLE_API_KEY", ""),
            shopify_api_key=os.getenv("SHOPIFY_API_KEY", ""),
            shopify_api_secret=os.getenv("SHOPIFY_API_SECRET", ""),
            app_url=os.getenv("APP_URL", "").rstrip("/"),
            allowed_origins=_split_origins(origins) if origins else DEFAULT_ALLOWED_ORIGINS,
            appstle_api_base=os.getenv("APPSTLE_API_BASE", APPSTLE_API_BASE).rstrip("/"),
            shopify_scopes=os.getenv("SHOPIFY_SCOPES", SHOPIFY_SCOPES),
            rate_limit=os.getenv("RATE_LIMIT", "60 per minute"),
            upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT", "15")),
            trusted_proxies=int(os.getenv("TRUSTED_PROXY_COUNT", "0")),
        )
        config.warn_missing()
        return config

    def warn_missing(self) -> None:
        for name, value in (
            ("APPSTLE_API_KEY", self.appstle_api_key),
            ("SHOPIFY_API_KEY", self.shopify_api_key),
            ("SHOPIFY_API_SECRET", self.shopify_api_secret),
            ("APP_URL", self.app_url),
        ):
            if not value:
                logger.warning("%s is not configured", name)
