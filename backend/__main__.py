from . import config
from .backend import app, logger

if __name__ == "__main__":
    logger.info(f"Starting Canvas Lite proxy on http://{config.HOST}:{config.PORT}")
    logger.info(f"Upstream timeout: {config.CANVAS_REQUEST_TIMEOUT}s, CORS origins: {', '.join(config.CORS_ORIGINS)}")
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG, use_reloader=False)
