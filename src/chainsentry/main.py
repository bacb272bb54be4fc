"""Main entry point - builds the integrations and serves health and metrics."""

import asyncio
import logging
import signal
from typing import Optional

import uvicorn

from chainsentry.api.app import create_app
from chainsentry.aptos import AptosIndexer
from chainsentry.config import get_settings
from chainsentry.fuel import FuelGraphQLProvider, FuelWallet, MiraAmm, MiraAPIService, WalletBackend
from chainsentry.logger import set_label, setup_logging
from chainsentry.metrics import MetricsRegistry
from chainsentry.notifications import create_sender
from chainsentry.status import StaticStatusProvider

logger = logging.getLogger(__name__)


class Application:
    """Owns the metrics registry, the integration clients and the HTTP server.

    Wallet signing and Mira swap construction are pluggable; without a
    ``wallet_backend`` and ``amm`` the Fuel wallet and Mira service are not
    created.
    """

    def __init__(
        self,
        wallet_backend: Optional[WalletBackend] = None,
        amm: Optional[MiraAmm] = None,
    ):
        self.settings = get_settings()
        self.metrics = MetricsRegistry()
        self.status = StaticStatusProvider(ready=False)
        self.wallet_backend = wallet_backend
        self.amm = amm

        self.aptos: Optional[AptosIndexer] = None
        self.fuel_provider: Optional[FuelGraphQLProvider] = None
        self.wallet: Optional[FuelWallet] = None
        self.mira: Optional[MiraAPIService] = None
        self.telegram = None
        self._shutdown_event = asyncio.Event()

    def build_clients(self) -> None:
        """Create the integration clients and register their error counters."""
        settings = self.settings

        self.aptos = AptosIndexer(
            indexer_url=settings.aptos_indexer_url, timeout=settings.http_timeout
        ).with_metrics(self.metrics)

        self.fuel_provider = FuelGraphQLProvider(
            url=settings.fuel_graphql_url, timeout=settings.http_timeout
        )

        if self.wallet_backend is not None:
            self.wallet = FuelWallet(self.wallet_backend, self.fuel_provider).with_metrics(
                self.metrics
            )
            if self.amm is not None:
                self.mira = MiraAPIService(
                    self.fuel_provider,
                    self.wallet,
                    self.amm,
                    base_url=settings.mira_api_url,
                    timeout=settings.http_timeout,
                ).with_metrics(self.metrics)
        else:
            logger.warning("No wallet backend configured - Fuel wallet and Mira swaps disabled")

        sender = create_sender(settings)
        if sender is not None:
            self.telegram = sender.with_metrics(self.metrics)

    async def start(self):
        """Start all services."""
        setup_logging(self.settings.log_level, self.settings.log_json)
        set_label("environment", self.settings.environment)

        logger.info("Starting chainsentry...")
        logger.info(f"Environment: {self.settings.environment}")

        self.build_clients()

        api_task = asyncio.create_task(self._run_api())
        self.status.mark_ready()
        logger.info("API task created")

        # Wait for shutdown signal or the server exiting on its own
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        await asyncio.wait({api_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        self.status.mark_not_ready("shutting down")
        for task in (api_task, shutdown_task):
            task.cancel()
        await asyncio.gather(api_task, shutdown_task, return_exceptions=True)

        await self._cleanup()

    async def _run_api(self):
        """Run the HTTP server."""
        try:
            app = create_app(self.metrics, self.status)
            config = uvicorn.Config(
                app,
                host=self.settings.api_host,
                port=self.settings.api_port,
                log_level="debug" if self.settings.debug else "info",
            )
            server = uvicorn.Server(config)
            logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")
            await server.serve()
        except asyncio.CancelledError:
            logger.info("API server cancelled")
        except Exception as e:
            logger.error(f"API error: {e}")
            raise

    async def _cleanup(self):
        """Cleanup resources."""
        logger.info("Cleaning up...")
        if self.telegram is not None:
            await self.telegram.close()
        logger.info("Cleanup complete")

    def shutdown(self):
        """Signal shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()


def main():
    """Main entry point."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    app = Application()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, app.shutdown)

    try:
        loop.run_until_complete(app.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        loop.close()


if __name__ == "__main__":
    main()
