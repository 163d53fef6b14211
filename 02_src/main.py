"""Main entry point for OptiCom."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from opticom.api import create_fastapi_app
from opticom.app import Application
from opticom.config import Settings
from opticom.logging_config import setup_logging
from sandbox import Sandbox


def main():
    """Run the service."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Fails fast on invalid AGENT_RESPONSE_INTERVAL / GOAL_CHECK_INTERVAL
    settings = Settings.from_env()

    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    api_url = f"http://{api_host}:{api_port}"

    application = Application(settings=settings)
    app = create_fastapi_app(application, sandbox=Sandbox(api_url=api_url))

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
        log_config=None,
    )


if __name__ == "__main__":
    main()
