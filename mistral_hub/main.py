"""Main application entry point.

Runs FastAPI (port 8000) with NiceGUI mounted for the chat interface.
Environment variables are loaded from .env file.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

from mistral_hub.config import AppConfig, get_app_config  # noqa: E402

logger = logging.getLogger(__name__)


def configure_logging(config: AppConfig) -> None:
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def run_integrated(config: AppConfig) -> None:
    """Run FastAPI with NiceGUI mounted on the same server.

    FastAPI handles API routes, NiceGUI handles the UI.
    Both accessible on the configured port.
    """
    import uvicorn
    from nicegui import ui

    from mistral_hub.api.app import create_app
    from mistral_hub.ui.chat_page import register_pages

    app = create_app()
    register_pages(config)

    # Mount NiceGUI onto FastAPI
    ui.run_with(
        app,
        title="MistralHub",
        dark=True,
        storage_secret=config.storage_secret,
    )

    logger.info(f"Starting integrated server on http://localhost:{config.port}")
    logger.info(f"API docs available at http://localhost:{config.port}/docs")

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


def server_commands(config: AppConfig) -> dict[str, list[str]]:
    """Command lines for the API and UI processes of separate mode."""
    return {
        "api": [
            sys.executable,
            "-m",
            "uvicorn",
            "mistral_hub.api.app:app",
            "--host",
            config.host,
            "--port",
            str(config.port),
        ],
        "ui": [sys.executable, "-m", "mistral_hub.ui.chat_page"],
    }


def supervise(processes: dict[str, subprocess.Popen], poll_interval: float = 1.0) -> str | None:
    """Wait until any process exits, then stop the rest.

    Returns:
        Name of the first process that exited, or None on Ctrl+C.
    """
    exited = None
    try:
        while exited is None:
            time.sleep(poll_interval)
            exited = next((n for n, p in processes.items() if p.poll() is not None), None)
        logger.warning(f"{exited} server exited with code {processes[exited].returncode}")
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for process in processes.values():
            process.terminate()
        for process in processes.values():
            process.wait()
    return exited


def run_separate(config: AppConfig) -> None:
    """Run FastAPI and NiceGUI as separate servers.

    FastAPI on ``PORT``, NiceGUI on ``UI_PORT``; the UI reaches the API
    through ``API_BASE_URL``.
    """
    logger.info(f"Starting FastAPI on http://localhost:{config.port}")
    logger.info(f"Starting NiceGUI on http://localhost:{config.ui_port}")
    processes = {name: subprocess.Popen(cmd) for name, cmd in server_commands(config).items()}
    supervise(processes)


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run FastAPI and NiceGUI on different ports.
    Default is integrated mode (both on one port).
    """
    config = get_app_config()
    configure_logging(config)
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting MistralHub in {mode} mode")

    if mode == "separate":
        run_separate(config)
    else:
        run_integrated(config)


if __name__ == "__main__":
    main()
