"""
FlexVol Service Launcher

Runs the lifecycle control API on a background thread so a node-local
agent can drive the plugin over HTTP instead of executing the driver.

Usage:
    from flexvol.service import FlexService

    service = FlexService(controller, listen_address="127.0.0.1", port=8010)
    service.start()
    # ... API serves requests in the background ...
    service.stop()
"""

import threading
import time
import logging
from typing import Optional
from datetime import datetime
from fastapi import FastAPI
import uvicorn

from flexvol import __version__, control_app
from flexvol.controller import Controller

logger = logging.getLogger(__name__)


def create_app(controller: Controller) -> FastAPI:
    """Create the control API app bound to `controller`"""
    control_app.set_controller(controller)

    app = FastAPI(title="FlexVol Control Plane", version=__version__)
    app.include_router(control_app.router)
    start_time = datetime.utcnow()

    @app.get("/")
    def root():
        return {
            "service": "flexvol_control",
            "version": __version__,
            "uptime_seconds": (datetime.utcnow() - start_time).total_seconds(),
            "timestamp": datetime.utcnow().isoformat()
        }

    return app


class FlexService:
    """Owns the control API server and its thread"""

    def __init__(
        self,
        controller: Controller,
        listen_address: str = "127.0.0.1",
        port: int = 8010
    ):
        """
        Args:
            controller: Lifecycle controller served by the API
            listen_address: Address to bind the API to
            port: API port (default 8010)
        """
        self.controller = controller
        self.listen_address = listen_address
        self.port = port
        self.app = create_app(controller)

        self.running = False
        self.server: Optional[uvicorn.Server] = None
        self.api_thread: Optional[threading.Thread] = None

        logger.info(f"FlexVol service initialized on {listen_address}:{port}")

    def start(self):
        """Start the control API"""
        if self.running:
            logger.warning("FlexVol service already running")
            return

        self.running = True
        self.server = uvicorn.Server(uvicorn.Config(
            self.app,
            host=self.listen_address,
            port=self.port,
            log_level="info",
            access_log=False
        ))
        self.api_thread = threading.Thread(
            target=self._run_api,
            daemon=True
        )
        self.api_thread.start()

        logger.info(f"FlexVol service started: Control={self.port}")

    def stop(self):
        """Stop the control API"""
        if not self.running:
            return

        logger.info("Stopping FlexVol service...")

        self.running = False
        if self.server is not None:
            self.server.should_exit = True

        if self.api_thread and self.api_thread.is_alive():
            self.api_thread.join(timeout=5)

        logger.info("FlexVol service stopped")

    def _run_api(self):
        """Run control API server (runs in background thread)"""
        try:
            self.server.run()
        except Exception as e:
            logger.error(f"Control API error: {e}", exc_info=True)
        finally:
            self.running = False

    def wait(self):
        """Block until service stops (for main process)"""
        try:
            while self.running:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
            self.stop()
