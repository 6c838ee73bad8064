"""Main entry point for running the UDP NMEA sender as a standalone service."""

import asyncio
import signal
import sys
from typing import Optional
import structlog
from prometheus_client import start_http_server

from .config import Settings
from .host import StandaloneHost
from .logging_config import setup_logging, error_handler
from .relay import UdpNmeaRelay
from .udp_listener import SentenceListener

logger = structlog.get_logger(__name__)


class UdpNmeaSenderApp:
    """Standalone host wiring: options file, NMEA input listener and relay."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the application."""
        self.settings = settings or Settings()
        self.host = StandaloneHost(self.settings.options_file)
        self.relay = UdpNmeaRelay(self.host)
        self.listener: Optional[SentenceListener] = None
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._health_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the relay and the NMEA input."""
        logger.info("Starting UDP NMEA sender",
                    config=self.settings.get_summary())

        options = await self.host.load_plugin_options()
        await self.relay.start(options)

        if self.settings.nmea_listen_enabled:
            self.listener = SentenceListener(self.settings, self.host.nmea_channel)
            await self.listener.start()

        self._running = True
        self._health_task = asyncio.create_task(self._monitor_health())

        logger.info("UDP NMEA sender started successfully")

    async def stop(self) -> None:
        """Stop the application gracefully, including after a partial start."""
        logger.info("Stopping UDP NMEA sender...")
        self._running = False

        if self._health_task:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

        # Stop input first so nothing is emitted into a half-stopped relay
        if self.listener:
            await self.listener.stop()

        await self.relay.stop()

        logger.info("UDP NMEA sender stopped")

    def request_shutdown(self, sig: Optional[int] = None) -> None:
        logger.info("Received shutdown signal", signal=sig)
        self._shutdown_event.set()

    async def _monitor_health(self) -> None:
        """Periodically log application statistics."""
        while self._running:
            await asyncio.sleep(self.settings.health_check_interval)

            stats = {
                'relay': self.relay.get_stats(),
                'listener': self.listener.get_stats() if self.listener else None,
                'errors': error_handler.get_error_stats(),
            }
            logger.info("Application statistics", **stats)

    async def run(self) -> None:
        """Run the application until shutdown."""
        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()


def setup_signal_handlers(app: UdpNmeaSenderApp) -> None:
    """Set up signal handlers for graceful shutdown."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, app.request_shutdown, sig)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            signal.signal(sig, lambda s, frame: loop.call_soon_threadsafe(app.request_shutdown, s))


async def run() -> None:
    """Load settings, set up logging and metrics, and run until signalled."""
    settings = Settings()

    setup_logging(settings)

    if settings.metrics_enabled:
        start_http_server(settings.metrics_port)
        logger.info("Prometheus metrics server started",
                    port=settings.metrics_port)

    app = UdpNmeaSenderApp(settings)
    setup_signal_handlers(app)

    try:
        await app.run()
    except Exception as e:
        logger.error("Fatal error", error=str(e), exc_info=True)
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
