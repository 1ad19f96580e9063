"""
Outbound HTTP clients.

Every call to Appstle or to a shop's OAuth endpoints goes through one of the
two clients below. Non-2xx replies and transport failures are both turned
into UpstreamError so route handlers only deal with one failure type.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from .config import APPSTLE_API_BASE, SHOPIFY_SCOPES
from .errors import UpstreamError

logger = logging.getLogger(__name__)


def _query_value(value: Any) -> Any:
    # Appstle expects JSON-style literals; requests would drop None entirely
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _decode(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _send(session: requests.Session, method: str, url: str, timeout: float, **kwargs) -> Any:
    try:
        resp = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise UpstreamError(str(e)) from e

    if not 200 <= resp.status_code < 300:
        raise UpstreamError(
            f"Request failed with status code {resp.status_code}",
            status_code=resp.status_code,
            payload=_decode(resp),
        )
    return _decode(resp)


class AppstleClient:
    """Thin wrapper over the Appstle external v2 API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = APPSTLE_API_BASE,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "X-API-Key": api_key,
            "Content-Type": "application/json",
        })

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params)

    def _put(self, path: str, params: Dict[str, Any]) -> Any:
        # Appstle takes everything in the query string; the body is always {}
        return self._request("PUT", path, params, json={})

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]], **kwargs) -> Any:
        query = {k: _query_value(v) for k, v in (params or {}).items()}
        return _send(
            self.session,
            method,
            f"{self.base_url}/{path}",
            self.timeout,
            params=query,
            **kwargs,
        )

    def get_customer(self, customer_id: str) -> Any:
        return self._get(f"subscription-customers/{customer_id}")

    def add_line_item(self, contract_id, variant_id, quantity, is_one_time_product) -> Any:
        return self._put("subscription-contracts-add-line-item", {
            "contractId": contract_id,
            "quantity": quantity,
            "variantId": variant_id,
            "isOneTimeProduct": is_one_time_product,
        })

    def get_contract_details(self, subscription_contract_id, page: int = 0, size: int = 10,
                             sort: str = "id,desc") -> Any:
        return self._get("subscription-contract-details", {
            "subscriptionContractId": subscription_contract_id,
            "page": page,
            "size": size,
            "sort": sort,
        })

    def remove_line_item(self, contract_id, line_id, remove_discount=True) -> Any:
        return self._put("subscription-contracts-remove-line-item", {
            "contractId": contract_id,
            "lineId": line_id,
            "removeDiscount": remove_discount,
        })

    def skip_upcoming_order(self, contract_id) -> Any:
        return self._put("subscription-billing-attempts/skip-upcoming-order", {
            "subscriptionContractId": contract_id,
        })

    def apply_discount(self, contract_id, discount_code) -> Any:
        return self._put("subscription-contracts-apply-discount", {
            "contractId": contract_id,
            "discountCode": discount_code,
        })


class ShopifyOAuthClient:
    """Builds install redirects and exchanges authorization codes."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        scopes: str = SHOPIFY_SCOPES,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.scopes = scopes
        self.timeout = timeout
        self.session = session or requests.Session()

    def authorize_url(self, shop: str, redirect_uri: str, state: str) -> str:
        query = urlencode({
            "client_id": self.client_id,
            "scope": self.scopes,
            "state": state,
            "redirect_uri": redirect_uri,
        })
        return f"https://{shop}/admin/oauth/authorize?{query}"

    def exchange_code(self, shop: str, code: str) -> Any:
        return _send(
            self.session,
            "POST",
            f"https://{shop}/admin/oauth/access_token",
            self.timeout,
            json={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
            },
        )
