import asyncio
import signal
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from bou_responder.bridge import EventBridge
from bou_responder.config import get_default_config_path, load_config
from bou_responder.datastructures import BrokerSettings, ConnectionConfig
from bou_responder.logger import logger, setup_logger

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


@dataclass(frozen=True)
class AppConfiguration:
    config_path: Path | None
    ca_file: Path | None
    log_level: int
    log_serialize: bool

    def resolve_config_path(self) -> Path:
        return self.config_path or get_default_config_path()


class ApplicationRunner:
    def run(self, app_configuration: AppConfiguration) -> None:
        setup_logger(level=app_configuration.log_level, serialize=app_configuration.log_serialize)

        connection_config = self.load(app_configuration)
        broker_settings = BrokerSettings(
            ca_file=str(app_configuration.ca_file) if app_configuration.ca_file else None
        )
        bridge = EventBridge(connection_config, broker_settings=broker_settings)
        asyncio.run(self.serve(bridge))

    def load(self, app_configuration: AppConfiguration) -> ConnectionConfig:
        config_path = app_configuration.resolve_config_path()
        logger.info(f"Reading the configuration from {config_path}")
        return load_config(config_path)

    async def serve(self, bridge: EventBridge) -> None:
        loop = asyncio.get_running_loop()
        for signum in STOP_SIGNALS:
            # Not available on every platform (e.g. Windows proactor loops).
            with suppress(NotImplementedError):
                loop.add_signal_handler(signum, bridge.stop)

        try:
            await bridge.run()
        finally:
            for signum in STOP_SIGNALS:
                with suppress(NotImplementedError):
                    loop.remove_signal_handler(signum)

        logger.info("The event bridge terminated", extra=bridge.info())
