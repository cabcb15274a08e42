"""
Main application entry point for the Telegram relay bridge.
Wires the transport, translator and relay orchestrator together and runs until
SIGINT/SIGTERM.
"""
import asyncio
import logging
import signal
import sys
from typing import Optional

import structlog
from pydantic import ValidationError

from telebridge.clients import ClientFactory
from telebridge.config import Settings, get_settings
from telebridge.core import RelayOrchestrator
from telebridge.core.errors import ConfigurationError, TransportFatal
from telebridge.translators import create_translator

logger = structlog.get_logger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the standard library logging handlers."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.DEBUG if settings.debug_mode else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler('bot.log', encoding='utf-8')
        ]
    )
    # httpx logs every polling request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


class TelegramRelayBridge:
    """Main application class for the Telegram relay bridge."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client_factory: Optional[ClientFactory] = None
        self.orchestrator: Optional[RelayOrchestrator] = None
        self._shutdown_event = asyncio.Event()

    def initialize(self) -> None:
        """Build all application components."""
        logger.info("Initializing telebridge...")

        self.client_factory = ClientFactory(self.settings)

        translator = create_translator(self.settings)
        if translator is None:
            logger.info("Translation is disabled; set TRANSLATION_ENABLED=true to enable it")
        else:
            logger.info(
                "Translation is enabled",
                provider=self.settings.translation_provider,
                fallback=self.settings.translation_fallback_provider,
                source_lang=self.settings.translation_source_lang,
                target_lang=self.settings.translation_target_lang,
            )

        self.orchestrator = RelayOrchestrator(self.settings, self.client_factory, translator)
        logger.info("Bridge initialization completed", delay_ms=self.settings.message_delay_ms)

    async def start(self) -> None:
        await self.orchestrator.start()
        logger.info("Bridge is running. Press Ctrl+C to stop.")

    async def stop(self) -> None:
        """Stop all components gracefully."""
        if self.orchestrator is None:
            return
        try:
            stats = self.orchestrator.get_statistics()
            await self.orchestrator.stop()
            logger.info("Bridge stopped gracefully", **stats)
        except Exception as e:
            logger.error("Error during shutdown", error=str(e), exc_info=True)

    async def run(self) -> None:
        """Run the bridge until a shutdown signal arrives."""
        self.initialize()
        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            logger.info("Received signal, initiating shutdown", signal=signum)
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except NotImplementedError:
                signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(signal_handler, signum))


async def main() -> None:
    """Main application entry point."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)

    bridge = TelegramRelayBridge(settings)
    bridge._setup_signal_handlers()

    try:
        await bridge.run()
    except (TransportFatal, ConfigurationError) as e:
        logger.error("Failed to start bridge", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.error("Unexpected error in main", error=str(e), exc_info=True)
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    if sys.platform != 'win32':
        import uvloop
        uvloop.install()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Application terminated by user")


if __name__ == "__main__":
    run()
