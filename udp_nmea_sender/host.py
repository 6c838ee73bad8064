"""Host application interface consumed by the relay, and a standalone host."""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union
import aiofiles
import aiofiles.os
import structlog

from .events import EventChannel

logger = structlog.get_logger(__name__)


class PluginHost(Protocol):
    """What the relay needs from the application it runs in."""

    # Domain channel carrying raw sentences under "nmea0183"
    nmea_channel: EventChannel
    # General application channel ("nmea0183out" and user-named events)
    app_channel: EventChannel

    async def save_plugin_options(self, options: Dict[str, Any]) -> None:
        """Persist plugin options. Raises on failure."""
        ...

    def set_plugin_status(self, message: str) -> None:
        ...

    def set_plugin_error(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        ...


class StandaloneHost:
    """Host backed by a JSON options file, used when running as a service."""

    def __init__(self, options_file: Union[str, Path]):
        """
        Initialize the standalone host.

        Args:
            options_file: Path of the JSON plugin options file
        """
        self.options_file = Path(options_file)
        self.nmea_channel = EventChannel("nmea")
        self.app_channel = EventChannel("app")
        self.last_status: Optional[str] = None
        self.last_error: Optional[str] = None

    async def load_plugin_options(self) -> Dict[str, Any]:
        """
        Read plugin options from disk.

        Returns:
            Stored options, or an empty destination list if the file does not exist
        """
        try:
            async with aiofiles.open(self.options_file, 'r', encoding='utf-8') as f:
                content = await f.read()
        except FileNotFoundError:
            logger.warning("Options file not found - no destinations configured",
                           options_file=str(self.options_file))
            return {"destinations": []}

        try:
            options = json.loads(content)
        except ValueError as e:
            logger.error("Options file is not valid JSON",
                         options_file=str(self.options_file),
                         error=str(e))
            raise

        if not isinstance(options, dict):
            raise ValueError(f"Options file {self.options_file} must hold a JSON object")

        return options

    async def save_plugin_options(self, options: Dict[str, Any]) -> None:
        """Write plugin options, replacing the file atomically."""
        self.options_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.options_file.with_name(self.options_file.name + ".tmp")

        async with aiofiles.open(tmp_file, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(options, indent=2))
        await aiofiles.os.replace(tmp_file, self.options_file)

        logger.info("Plugin options saved", options_file=str(self.options_file))

    def set_plugin_status(self, message: str) -> None:
        self.last_status = message
        logger.info("Plugin status", status=message)

    def set_plugin_error(self, message: str) -> None:
        self.last_error = message
        logger.error("Plugin error", error=message)

    def debug(self, message: str) -> None:
        logger.debug(message)
