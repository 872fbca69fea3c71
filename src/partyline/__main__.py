"""アプリケーションのエントリポイント"""

import asyncio
import logging
import signal
import sys
from pathlib import Path

from partyline.application.handlers import CommandHandler
from partyline.application.services import MessageForwarder, ResultHistory
from partyline.application.use_cases import (
    AcceptRequestUseCase,
    EndConnectionUseCase,
    RejectRequestUseCase,
    RouteMessageUseCase,
)
from partyline.config import (
    Config,
    ConfigError,
    LoggingConfig,
    StorageConfig,
    load_config,
)
from partyline.domain.entities import Party
from partyline.domain.repositories import PartyStore
from partyline.domain.services import ConnectionBroker, PartyRegistry
from partyline.infrastructure.persistence import (
    DatabaseManager,
    InMemoryPartyStore,
    SQLitePartyStore,
)
from partyline.infrastructure.slack import (
    SlackAppRunner,
    SlackEventAdapter,
    SlackMessagingService,
    create_slack_app,
)
from partyline.presentation import register_handlers

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()

    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_logger = logging.getLogger(logger_name)
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            individual_logger.setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


async def create_store(
    config: StorageConfig,
) -> tuple[PartyStore, DatabaseManager | None]:
    """Create the party store selected in the config.

    Returns:
        The store and, for SQLite, the database manager to close on exit.
    """
    if config.backend == "sqlite":
        assert config.database_path is not None
        db_manager = DatabaseManager(config.database_path)
        await db_manager.create_tables()
        logger.info("Using SQLite store: %s", config.database_path)
        return SQLitePartyStore(db_manager.get_session), db_manager

    logger.info("Using in-memory store")
    return InMemoryPartyStore(), None


async def register_aggregation_channels(
    registry: PartyRegistry, config: Config
) -> None:
    """Register the aggregation channels listed in the config."""
    for channel in config.routing.aggregation_channels:
        party = Party(
            service_url=channel.service_url,
            channel_id=channel.channel_id,
            conversation_id=channel.conversation_id,
            conversation_name=channel.conversation_name,
        )
        if await registry.add_aggregation_party(party):
            logger.info("Registered aggregation channel: %s", party)


async def main() -> None:
    """アプリケーションを起動する"""
    config_path = Path("config.yaml")
    if not config_path.exists():
        logger.error("config.yaml not found")
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)

    app = create_slack_app(config.slack)

    messaging_service = SlackMessagingService(app.client)
    bot_user_id = await messaging_service.get_bot_user_id()
    bot_name = await messaging_service.get_bot_name()
    logger.info("Bot user ID: %s", bot_user_id)

    store, db_manager = await create_store(config.storage)

    result_history = None
    if config.routing.result_history_size > 0:
        result_history = ResultHistory(config.routing.result_history_size)

    registry = PartyRegistry(store)
    broker = ConnectionBroker(registry, result_hook=result_history)
    await register_aggregation_channels(registry, config)

    forwarder = MessageForwarder(registry, broker)
    event_adapter = SlackEventAdapter(app.client, bot_user_id, bot_name)

    route_use_case = RouteMessageUseCase(
        registry=registry,
        broker=broker,
        forwarder=forwarder,
        messaging_service=messaging_service,
        config=config.routing,
    )
    command_handler = CommandHandler(
        registry=registry,
        accept_use_case=AcceptRequestUseCase(
            registry,
            broker,
            messaging_service,
            create_direct_conversation=config.routing.create_direct_conversation,
        ),
        reject_use_case=RejectRequestUseCase(broker, messaging_service),
        end_use_case=EndConnectionUseCase(broker, messaging_service),
        messaging_service=messaging_service,
    )

    register_handlers(
        app, event_adapter, forwarder, route_use_case, command_handler, bot_user_id
    )

    runner = SlackAppRunner(app, config.slack.app_token)

    logger.info("Starting Socket Mode handler...")
    runner_task = asyncio.create_task(runner.start())

    # Setup signal handlers for graceful shutdown
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal...")
        stop_event.set()

    loop.add_signal_handler(signal.SIGINT, shutdown_handler)
    loop.add_signal_handler(signal.SIGTERM, shutdown_handler)

    await stop_event.wait()

    logger.info("Shutting down...")

    closed = await runner.close(timeout=5.0)
    if not closed:
        logger.warning("Runner close timed out, cancelling tasks...")

    runner_task.cancel()
    await asyncio.gather(runner_task, return_exceptions=True)

    if db_manager is not None:
        await db_manager.close()

    logger.info("Shutdown complete")


def run() -> None:
    """Run the async main function."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
