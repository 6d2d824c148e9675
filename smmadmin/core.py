"""Core application logic for smmadmin."""

import asyncio
import logging

from smmadmin.config import Config
from smmadmin.utils import ensure_directory, setup_logging, NetworkConfig
from smmadmin.services.meta_graph import MetaGraphClient
from smmadmin.services.webhooks import WebhookClient
from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.managers.refresh_locks import RefreshLockRegistry
from smmadmin.managers.token_refresh import TokenRefreshCoordinator
from smmadmin.managers.background import BackgroundTaskRunner
from smmadmin.managers.delivery import PostDelivery
from smmadmin.managers.dispatch import ScheduledDispatcher
from smmadmin.managers.generation import ContentGenerator
from smmadmin.managers.brands import BrandManager
from smmadmin.managers.documents import DocumentManager
from smmadmin.managers.posts import PostManager
from smmadmin.managers.users import UserManager


class SmmAdmin:
    """Main application class wiring storage, token refresh and publishing."""

    def __init__(self, config_path: str, configure_logging: bool = True):
        """Initialize the application.

        Args:
            config_path: Path to the configuration file
            configure_logging: Set up logging from the [general] section
        """
        self.config = Config(config_path)

        if configure_logging:
            setup_logging(
                self.config.get("general", "log_file", fallback=""),
                self.config.get("general", "log_level", fallback="INFO"),
            )

        logging.info("🚀 Starting up!")

        self._initialize_components()

    def _initialize_components(self):
        """Create all components from the current configuration."""
        self.upload_directory = self.config.get_path(
            "general", "upload_directory", fallback="uploads"
        )
        ensure_directory(self.upload_directory)

        self.network_config = NetworkConfig(self.config)

        self.db = DatabaseManager(self.config.get("database", "path"))
        self.token_store = GlobalTokenStore(self.db)
        self.refresh_locks = RefreshLockRegistry()
        self.graph_client = MetaGraphClient(
            self.config.get("meta", "graph_api_url"), self.network_config
        )
        self.refresh_coordinator = TokenRefreshCoordinator(
            self.token_store, self.graph_client, self.refresh_locks
        )

        self.webhooks = WebhookClient(self.network_config)
        self.tasks = BackgroundTaskRunner()

        self.delivery = PostDelivery(
            self.db,
            self.token_store,
            self.refresh_coordinator,
            self.webhooks,
            self.config.get("webhooks", "post_url", fallback=None),
        )
        self.generator = ContentGenerator(
            self.db,
            self.webhooks,
            self.config.get("webhooks", "generate_url", fallback=None),
            self.upload_directory,
        )
        self.dispatcher = ScheduledDispatcher(
            self.db,
            self.delivery,
            interval=self.config.getfloat("scheduler", "interval", fallback=60),
        )

        self.brands = BrandManager(self.db, self.token_store, self.upload_directory)
        self.documents = DocumentManager(
            self.db,
            self.webhooks,
            self.upload_directory,
            upload_rag_url=self.config.get("webhooks", "upload_rag_url", fallback=None),
            delete_rag_url=self.config.get("webhooks", "delete_rag_url", fallback=None),
        )
        self.posts = PostManager(self.db, self.delivery, self.generator, self.tasks)
        self.users = UserManager(self.db)

        self._log_configuration()

    def _log_configuration(self):
        for option in ("post_url", "generate_url", "upload_rag_url", "delete_rag_url"):
            if not self.config.get("webhooks", option, fallback=""):
                logging.warning(f"⚠️ Webhook not configured: [webhooks] {option}")
        logging.info(f"📂 Upload directory: {self.upload_directory}")

    def _apply_config_changes(self):
        """Apply reloaded settings to the running components.

        The database path and upload directory are only read at startup.
        """
        try:
            self.network_config.update_from_config()
            self.graph_client.graph_api_url = self.config.get("meta", "graph_api_url").rstrip("/")
            self.delivery.publish_url = self.config.get("webhooks", "post_url", fallback=None)
            self.generator.generate_url = self.config.get("webhooks", "generate_url", fallback=None)
            self.documents.upload_rag_url = self.config.get("webhooks", "upload_rag_url", fallback=None)
            self.documents.delete_rag_url = self.config.get("webhooks", "delete_rag_url", fallback=None)
            self.dispatcher.interval = self.config.getfloat("scheduler", "interval", fallback=60)
            self._log_configuration()
            logging.info("✅ Applied configuration changes to all components")
        except Exception as e:
            logging.error(f"💥 Error applying configuration changes: {e}")

    async def check_config_task(self):
        """Periodic task to check for configuration file changes."""
        try:
            check_seconds = 60

            while True:
                await asyncio.sleep(check_seconds)

                try:
                    if self.config.reload_if_changed():
                        logging.info("✅ Configuration reloaded successfully")
                        self._apply_config_changes()
                except Exception as e:
                    logging.error(f"💥 Error checking for config changes: {e}")
        except asyncio.CancelledError:
            logging.debug("⚙️ Config check task cancelled")

    async def run(self):
        """Run the dispatch loop and config watcher until cancelled."""
        background = [asyncio.create_task(self.check_config_task())]
        logging.info("⚙️ Configuration monitoring task started")

        if self.config.getboolean("scheduler", "enabled", fallback=True):
            background.append(asyncio.create_task(self.dispatcher.run()))
            logging.info(f"📬 Scheduled dispatch started (every {self.dispatcher.interval:g}s)")
        else:
            logging.warning("⛔️ Scheduled dispatch disabled")

        try:
            await asyncio.gather(*background)
        except asyncio.CancelledError:
            logging.info("🔪 Shutting down!")
        finally:
            for task in background:
                task.cancel()
            await asyncio.gather(*background, return_exceptions=True)
            await self.tasks.cancel_all()
            logging.info("🔴 Stopped")
