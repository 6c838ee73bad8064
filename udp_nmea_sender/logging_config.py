"""Logging configuration with structured logging support."""

import sys
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Any, Dict
import structlog
from structlog.stdlib import LoggerFactory
from prometheus_client import Counter, Gauge, Info

from . import __version__
from .config import Settings


# Prometheus metrics
DATAGRAMS_SENT = Counter(
    'udp_nmea_datagrams_sent_total',
    'Total number of datagrams handed to the network',
    ['destination']
)

SEND_ERRORS = Counter(
    'udp_nmea_send_errors_total',
    'Total number of datagrams that could not be sent',
    ['destination']
)

CONFIGURATION_ERRORS = Counter(
    'udp_nmea_configuration_errors_total',
    'Total number of destinations skipped because of bad configuration'
)

PERSISTENCE_ERRORS = Counter(
    'udp_nmea_persistence_errors_total',
    'Total number of failed plugin option write-backs'
)

SENTENCES_RECEIVED = Counter(
    'udp_nmea_sentences_received_total',
    'Total number of NMEA 0183 sentences received by the standalone listener'
)

DECODE_ERRORS = Counter(
    'udp_nmea_decode_errors_total',
    'Total number of undecodable datagrams received by the standalone listener'
)

ACTIVE_DESTINATIONS = Gauge(
    'udp_nmea_active_destinations',
    'Number of destinations with an open socket'
)

ACTIVE_SUBSCRIPTIONS = Gauge(
    'udp_nmea_active_subscriptions',
    'Number of event subscriptions held by the relay'
)

APP_INFO = Info(
    'udp_nmea_sender',
    'Application information'
)


def setup_logging(settings: Settings) -> None:
    """
    Configure structured logging with structlog.

    Args:
        settings: Application settings
    """
    # Set up stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level)
    )

    # Configure structlog processors
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_app_context,
    ]

    # Add appropriate renderer based on format
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.log_file:
        setup_file_logging(settings.log_file, settings.log_level)

    APP_INFO.info({
        'version': __version__,
        'options_file': settings.options_file,
        'nmea_listen_port': str(settings.nmea_listen_port),
    })


def setup_file_logging(log_file: str, log_level: str) -> None:
    """
    Set up file-based logging.

    Args:
        log_file: Path to log file
        log_level: Logging level
    """
    try:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(getattr(logging, log_level))
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

        logging.getLogger().addHandler(file_handler)

    except OSError as e:
        logger = structlog.get_logger(__name__)
        logger.error("Failed to setup file logging",
                     log_file=log_file,
                     error=str(e))


def add_app_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Add application context to all log messages.

    Args:
        logger: Logger instance
        method_name: Method name
        event_dict: Event dictionary

    Returns:
        Modified event dictionary
    """
    event_dict['app'] = 'udp-nmea-sender'
    return event_dict


class ErrorHandler:
    """Centralized handling of non-fatal relay errors with metrics and logging."""

    def __init__(self):
        self.logger = structlog.get_logger(__name__)
        self.error_counts: Dict[str, int] = {}

    def _count(self, kind: str) -> None:
        self.error_counts[kind] = self.error_counts.get(kind, 0) + 1

    def handle_send_error(self, destination: str, error: Exception) -> None:
        """Handle a datagram that could not be handed to the network."""
        SEND_ERRORS.labels(destination=destination).inc()
        self._count('send')

        self.logger.warning("UDP send error",
                            destination=destination,
                            error=str(error),
                            error_type=type(error).__name__)

    def handle_configuration_error(self, destination: Optional[str], reason: str) -> None:
        """Handle a destination that cannot be started from its configuration."""
        CONFIGURATION_ERRORS.inc()
        self._count('configuration')

        self.logger.error("Destination configuration error",
                          destination=destination,
                          reason=reason)

    def handle_persistence_error(self, error: Exception) -> None:
        """Handle a failed write-back of normalized plugin options."""
        PERSISTENCE_ERRORS.inc()
        self._count('persistence')

        self.logger.error("Failed to save plugin options",
                          error=str(error),
                          error_type=type(error).__name__)

    def handle_decode_error(self, data: bytes, error: Exception, sender: Optional[tuple] = None) -> None:
        """Handle an inbound datagram that could not be turned into sentences."""
        DECODE_ERRORS.inc()
        self._count('decode')

        self.logger.warning("NMEA datagram decode error",
                            data_hex=data.hex(),
                            error=str(error),
                            error_type=type(error).__name__,
                            sender=sender)

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_counts.copy()

    def reset_stats(self) -> None:
        """Reset error statistics."""
        self.error_counts.clear()


# Global error handler instance
error_handler = ErrorHandler()
