import logging
import secrets
from typing import Optional

from flask import Flask, request, jsonify, redirect
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import ProxyConfig
from .contracts import unpack_contract_details
from .errors import UpstreamError, ValidationError, is_blank
from .upstream import AppstleClient, ShopifyOAuthClient

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE"]
CORS_HEADERS = ["Content-Type", "Authorization"]

HOME_PAGE = "<h1>Your Appstle API Proxy is running successfully.</h1>"
INSTALLED_PAGE = "<h1>App installed successfully. You can now use the Appstle API Proxy.</h1>"
NOT_FOUND = "404: NOT_FOUND"


# ----------------------
# Helpers
# ----------------------
def json_body() -> dict:
    """Request body as a dict; anything else counts as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def require(data: dict, *fields: str, message: str) -> None:
    if any(is_blank(data.get(f)) for f in fields):
        raise ValidationError(message)


def new_state() -> str:
    """32 hex chars, regenerated for every install redirect."""
    return secrets.token_hex(16)


def upstream_failure(error: str, err: UpstreamError, with_details: bool = True):
    body = {"error": error}
    if with_details:
        body["details"] = err.details
    return jsonify(body), 500


# ----------------------
# App Setup
# ----------------------
def create_app(config: ProxyConfig, appstle: Optional[AppstleClient] = None,
               shopify: Optional[ShopifyOAuthClient] = None) -> Flask:
    """Build the proxy app. Clients default to ones built from ``config``."""
    app = Flask(__name__)
    if config.trusted_proxies:
        # rate limits key on the client address, not the load balancer's
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=config.trusted_proxies)

    appstle = appstle or AppstleClient(
        config.appstle_api_key,
        base_url=config.appstle_api_base,
        timeout=config.upstream_timeout,
    )
    shopify = shopify or ShopifyOAuthClient(
        config.shopify_api_key,
        config.shopify_api_secret,
        scopes=config.shopify_scopes,
        timeout=config.upstream_timeout,
    )
    allowed_origins = set(config.allowed_origins)

    @app.before_request
    def reject_unknown_origin():
        # Requests without an Origin header (curl, server-to-server) pass.
        origin = request.headers.get("Origin")
        if origin and origin not in allowed_origins:
            logger.warning("Blocked request from origin %s", origin)
            return jsonify({"error": "Not allowed by CORS"}), 403

    CORS(
        app,
        origins=list(config.allowed_origins),
        methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        supports_credentials=True,
    )

    Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[config.rate_limit],
        storage_uri="memory://",
    )

    @app.errorhandler(ValidationError)
    def validation_failed(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(404)
    @app.errorhandler(405)
    def not_found(e):
        return NOT_FOUND, 404, {"Content-Type": "text/plain; charset=utf-8"}

    # ----------------------
    # Endpoints
    # ----------------------
    @app.route("/", methods=["GET"])
    def home():
        return HOME_PAGE, 200

    @app.route("/auth", methods=["GET"])
    def install():
        shop = request.args.get("shop")
        if not shop:
            return "Missing shop parameter.", 400

        # Not persisted and not checked on callback.
        state = new_state()
        redirect_uri = f"{config.app_url}/auth/callback"
        install_url = shopify.authorize_url(shop, redirect_uri, state)

        logger.debug("Redirect URI: %s", redirect_uri)
        logger.info("Redirecting %s to %s", shop, install_url)
        return redirect(install_url, code=302)

    @app.route("/auth/callback", methods=["GET"])
    def oauth_callback():
        shop = request.args.get("shop")
        code = request.args.get("code")
        if not shop or not code:
            return "Invalid parameters.", 400

        try:
            shopify.exchange_code(shop, code)
        except UpstreamError as e:
            logger.error("OAuth Error: %s", e.message)
            return "Failed to complete OAuth.", 500

        logger.info("OAuth token exchange completed for %s", shop)
        return INSTALLED_PAGE, 200

    @app.route("/api/appstle/<customer_id>", methods=["GET"])
    def customer_contracts(customer_id):
        try:
            data = appstle.get_customer(customer_id)
        except UpstreamError as e:
            logger.error("Error fetching customer data: %s", e.message)
            return upstream_failure("Failed to fetch customer data.", e, with_details=False)
        return jsonify(data), 200

    @app.route("/api/appstle/add-line-item", methods=["POST"])
    def add_line_item():
        data = json_body()
        require(data, "variantId", "contractId", "quantity",
                message="Missing required parameters.")
        # false is a valid value here, only absence is rejected
        if "isOneTimeProduct" not in data:
            raise ValidationError("Missing required parameters.")

        try:
            result = appstle.add_line_item(
                data["contractId"],
                data["variantId"],
                data["quantity"],
                data["isOneTimeProduct"],
            )
        except UpstreamError as e:
            logger.error("Error adding line item: %s", e.details)
            return upstream_failure("Failed to add line item.", e)
        return jsonify(result), 200

    @app.route("/api/appstle/contract-details", methods=["POST"])
    def contract_details():
        data = json_body()
        require(data, "subscriptionContractId", message="Missing subscriptionContractId")

        try:
            result = unpack_contract_details(
                appstle.get_contract_details(data["subscriptionContractId"])
            )
        except UpstreamError as e:
            logger.error("Error fetching contract details: %s", e.details)
            return upstream_failure("Failed to fetch subscription contract details.", e,
                                    with_details=False)
        return jsonify(result), 200

    @app.route("/api/appstle/remove-line-item", methods=["POST"])
    def remove_line_item():
        data = json_body()
        require(data, "contractId", "lineId",
                message="Missing required parameters: contractId and lineId are required.")

        try:
            result = appstle.remove_line_item(
                data["contractId"],
                data["lineId"],
                data.get("removeDiscount", True),
            )
        except UpstreamError as e:
            logger.error("Error removing line item: %s", e.details)
            return upstream_failure("Failed to remove line item.", e)
        return jsonify(result), 200

    @app.route("/api/appstle/skip-upcoming-order", methods=["POST"])
    def skip_upcoming_order():
        data = json_body()
        require(data, "contractId", message="Missing required parameter: contractId")

        try:
            result = appstle.skip_upcoming_order(data["contractId"])
        except UpstreamError as e:
            logger.error("Error skipping upcoming order: %s", e.details)
            return upstream_failure("Failed to skip upcoming order.", e)
        return jsonify({"message": "Upcoming order skipped successfully", "data": result}), 200

    @app.route("/api/appstle/apply-discount", methods=["POST"])
    def apply_discount():
        data = json_body()
        require(data, "contractId", "discountCode",
                message="Missing required parameters: contractId and discountCode")

        try:
            result = appstle.apply_discount(data["contractId"], data["discountCode"])
        except UpstreamError as e:
            logger.error("Error applying discount: %s", e.details)
            return upstream_failure("Failed to apply discount.", e)
        return jsonify({"message": "Discount applied successfully", "data": result}), 200

    return app
