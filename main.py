"""
Main entrypoint: run the credibility scoring API with uvicorn.

Env: API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT, CREDIBILITY_CURRENCY (see .env).

Equivalent: uvicorn backend_credibility.api_server.app:app --host 0.0.0.0 --port 8000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_credibility.credibility_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load env and run the FastAPI server in the main thread."""
    from backend_credibility.config import get_api_host, get_api_port

    api_host = get_api_host()
    api_port = get_api_port()

    from backend_credibility.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=api_host, port=api_port)
    uvicorn.run(app, host=api_host, port=api_port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
