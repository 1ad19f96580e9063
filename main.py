import os
import logging

from appstle_proxy import ProxyConfig, create_app

# Logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("appstle-proxy")

# ----------------------
# App Setup
# ----------------------
config = ProxyConfig.from_env()
app = create_app(config)

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8080"))
    logger.info("Starting Appstle proxy on port %d", port)
    app.run(host="0.0.0.0", port=port)
