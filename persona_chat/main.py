"""Persona Chat launcher.

Integrated mode (default) serves the API and the NiceGUI pages from one
uvicorn server on PORT. Separate mode starts the API on PORT and the UI on
UI_PORT as two processes. In both modes the UI talks to the API over HTTP
at API_BASE_URL, which defaults to the local API address.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv
from pydantic import ValidationError

from persona_chat.agent.config import get_agent_config
from persona_chat.clients.config import ClientConfig, get_client_config

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8000
DEFAULT_UI_PORT = 8080


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def api_port() -> int:
    return int(os.getenv("PORT", str(DEFAULT_PORT)))


def ui_port() -> int:
    return int(os.getenv("UI_PORT", str(DEFAULT_UI_PORT)))


def default_api_base_url(port: int) -> str:
    """API_BASE_URL if set, otherwise the API served locally on ``port``."""
    return os.getenv("API_BASE_URL") or f"http://localhost:{port}"


def prepare_client_config(port: int) -> ClientConfig:
    """Pin API_BASE_URL for the UI clients and log who they act for."""
    os.environ["API_BASE_URL"] = default_api_base_url(port)
    config = get_client_config()
    logger.info(f"UI uses API {config.api_base_url} as user {config.user_id}")
    return config


def model_configured() -> bool:
    """Check for a model key; without one chat and AI search answer 503."""
    try:
        config = get_agent_config()
    except ValidationError:
        logger.warning(
            "No LLM_API_KEY or OPENAI_API_KEY set: /chat/stream and /personas/generate will answer 503"
        )
        return False
    logger.info(f"Persona replies use model {config.model_name}")
    return True


def api_command(host: str, port: int) -> list[str]:
    return [
        sys.executable,
        "-m",
        "uvicorn",
        "persona_chat.api.app:app",
        "--host",
        host,
        "--port",
        str(port),
    ]


def ui_command() -> list[str]:
    return [sys.executable, "-m", "persona_chat.ui.chat_page"]


def run_integrated() -> None:
    """Serve API routes and chat pages from the same app on PORT."""
    import uvicorn
    from nicegui import ui

    from persona_chat.api.app import create_app
    from persona_chat.ui.chat_page import chat_page  # noqa: F401 - Registers the pages

    port = api_port()
    prepare_client_config(port)
    model_configured()

    app = create_app()
    ui.run_with(
        app,
        title="Persona Chat",
        favicon="🎭",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "persona-chat-secret"),
    )

    logger.info(f"Chat UI on http://localhost:{port}/, API docs on http://localhost:{port}/docs")
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the API and the UI as two processes until either exits."""
    port = api_port()
    prepare_client_config(port)
    model_configured()

    logger.info(f"Starting API on http://localhost:{port}, UI on http://localhost:{ui_port()}")
    processes = [
        subprocess.Popen(api_command(os.getenv("HOST", "0.0.0.0"), port)),
        subprocess.Popen(ui_command()),
    ]
    try:
        while all(proc.poll() is None for proc in processes):
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in processes:
            proc.terminate()
        for proc in processes:
            proc.wait()


def main() -> None:
    """Start Persona Chat in RUN_MODE (integrated or separate)."""
    configure_logging()
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting Persona Chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
