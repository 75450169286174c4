"""Main application entry point."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import yaml

from .models import AppConfig
from .chargers import ChargerClientRegistry, EaseeClient
from .prices import PriceCache, PriceService
from .scheduler import AutomationManager, ChargeEngine, ChargerCommandExecutor
from .storage import AsyncRepository, Repository, TokenCipher, create_db_engine, create_session_factory, init_db
from .api import health_router, prices_router, chargers_router, policies_router, automation_router

VERSION = "1.0.0"


# Configure logging
def setup_logging(level: str = "INFO"):
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True
    )


logger = logging.getLogger(__name__)


def load_config(config_path: Path = Path("config.yaml")) -> AppConfig:
    """Load config.yaml and apply environment overrides."""
    with open(config_path) as f:
        config_data = yaml.safe_load(f) or {}

    config = AppConfig(**config_data)

    if server_port := os.getenv("SERVER_PORT"):
        try:
            config.server.port = int(server_port)
            logger.info(f"Port overridden by SERVER_PORT environment variable: {server_port}")
        except ValueError:
            logger.warning(f"Invalid SERVER_PORT value '{server_port}', using config file value")
    if server_host := os.getenv("SERVER_HOST"):
        config.server.host = server_host
    if database_url := os.getenv("DATABASE_URL"):
        config.database.url = database_url
    if encryption_key := os.getenv("TOKEN_ENCRYPTION_KEY"):
        config.security.token_encryption_key = encryption_key

    return config


def build_registry(config: AppConfig) -> ChargerClientRegistry:
    """Charger brands this deployment can control."""
    registry = ChargerClientRegistry()
    registry.register("easee", lambda credentials: EaseeClient(credentials, config.easee))
    return registry


def build_repository(config: AppConfig) -> Repository:
    engine = create_db_engine(config.database)
    init_db(engine)
    return Repository(create_session_factory(engine), TokenCipher(config.security.token_encryption_key))


# Application state
class AppState:
    """Global application state."""

    def __init__(self):
        self.config: Optional[AppConfig] = None
        self.repository: Optional[AsyncRepository] = None
        self.registry: Optional[ChargerClientRegistry] = None
        self.prices: Optional[PriceService] = None
        self.engine: Optional[ChargeEngine] = None
        self.automation: Optional[AutomationManager] = None

    def configure(self, config: AppConfig, repository: Optional[Repository] = None):
        """Wire services from configuration.

        Blocking database calls run on a worker thread behind AsyncRepository.
        """
        self.config = config
        self.repository = AsyncRepository.for_url(repository or build_repository(config), config.database.url)
        self.registry = build_registry(config)
        self.prices = PriceService(self.repository, PriceCache(config.cache), config.tibber)
        executor = ChargerCommandExecutor(self.registry.create, self.repository.save_charger_credentials)
        self.engine = ChargeEngine(self.repository, self.prices, executor)
        self.automation = AutomationManager(self.engine, self.repository, config.automation)


app_state = AppState()


# Lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting price charge scheduler...")

    config_path = Path("config.yaml")
    if not config_path.exists():
        logger.error("config.yaml not found! Please create it from config.example.yaml")
        sys.exit(1)

    config = load_config(config_path)
    setup_logging(config.logging.level)

    logger.info(f"Loaded configuration from {config_path}")
    logger.info(f"Server will run on {config.server.host}:{config.server.port}")

    app_state.configure(config)
    app_state.automation.start()

    logger.info("Price charge scheduler started successfully")

    yield

    # Shutdown
    logger.info("Shutting down price charge scheduler...")
    app_state.automation.stop()
    app_state.repository.close()
    logger.info("Shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Price Charge Scheduler",
    description="Starts and pauses EV charging based on dynamic electricity prices",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router, prefix="/api", tags=["health"])
app.include_router(prices_router, prefix="/api", tags=["prices"])
app.include_router(chargers_router, prefix="/api", tags=["chargers"])
app.include_router(policies_router, prefix="/api", tags=["policies"])
app.include_router(automation_router, prefix="/api", tags=["automation"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Price Charge Scheduler",
        "version": VERSION,
        "status": "running",
        "docs": "/docs"
    }
