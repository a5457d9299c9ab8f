from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from hcp.api.error_handlers import register_error_handlers
from hcp.api.v1.router import api_router
from hcp.config import Settings, get_settings
from hcp.repositories import Repositories
from hcp.schemas.admin import AdminUser
from hcp.schemas.enums import AdminRole, AdminStatus
from hcp.storage import StorageAdapter, build_storage


logger = logging.getLogger(__name__)


async def seed_bootstrap_admin(repos: Repositories, config: Settings) -> Optional[AdminUser]:
    """
    Create the first Super Admin from BOOTSTRAP_ADMIN_* when the roster is empty.

    Skipped when no bootstrap credentials are configured, when admins already
    exist, or when the roster cannot be read.
    """
    if not (config.BOOTSTRAP_ADMIN_EMAIL and config.BOOTSTRAP_ADMIN_PASSWORD):
        return None

    result = await repos.admins.fetch_all()
    if not result.ok:
        logger.error(f"Admin roster unreadable, skipping bootstrap admin: {result.error.message}")
        return None
    if result.value:
        logger.info(f"Found {len(result.value)} existing admins. Skipping bootstrap admin.")
        return None

    admin = await repos.admins.create(
        AdminUser(
            name=config.BOOTSTRAP_ADMIN_NAME,
            email=config.BOOTSTRAP_ADMIN_EMAIL,
            role=AdminRole.SUPER_ADMIN,
            status=AdminStatus.ACTIVE,
            password=config.BOOTSTRAP_ADMIN_PASSWORD,
        ),
        actor_id="system",
    )
    logger.info(f"Created bootstrap admin {admin.email}")
    return admin


OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Admin login and JWT access tokens"},
    {"name": "Records", "description": "Collection gateway for developers, invoices, agreements, events, campaigns, admins and registry"},
    {"name": "Audit Logs", "description": "Filterable audit trail of admin actions"},
    {"name": "Dataset Versions", "description": "Developer dataset uploads, retention and activation"},
    {"name": "Billing", "description": "Invoice drafting from partner agreements"},
    {"name": "Health", "description": "Service health"},
]

API_DESCRIPTION = """
## HCP Certification Dashboard API

Back end for the certification-program dashboard: developer certification
records, partner agreements, invoices, community events, outreach campaigns,
the admin roster and the community registry, scoped by partner code.

- **API Docs**: /docs (Swagger UI)
- **Health Check**: /health
"""


def create_app(
    config: Optional[Settings] = None,
    storage: Optional[StorageAdapter] = None,
) -> FastAPI:
    """
    Build the application.

    Raises:
        ServerMisconfigured: a required setting (SECRET_KEY, DATABASE_URL for
            the sql backend) is missing.
    """
    config = config or get_settings()
    config.validate_startup()

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    storage = storage or build_storage(config)
    repositories = Repositories(storage, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"Starting {config.APP_NAME} v{config.APP_VERSION} ({storage.name} storage)")
        await storage.initialize()
        await seed_bootstrap_admin(repositories, config)

        yield

        # Shutdown
        await storage.close()
        logger.info("Shutting down...")

    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description=API_DESCRIPTION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=OPENAPI_TAGS,
    )

    app.state.settings = config
    app.state.storage = storage
    app.state.repositories = repositories

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag"],
    )

    register_error_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint with storage validation."""
        health_status = {
            "status": "healthy",
            "app": config.APP_NAME,
            "version": config.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "storage": "unknown",
            },
        }

        result = await storage.load_result(repositories.audit.key)
        if result.ok:
            health_status["checks"]["storage"] = f"{storage.name}: connected"
        else:
            health_status["status"] = "unhealthy"
            health_status["checks"]["storage"] = f"{storage.name}: {result.error.message}"
            return JSONResponse(status_code=503, content=health_status)

        return health_status

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {config.APP_NAME}",
            "version": config.APP_VERSION,
            "docs": "/docs",
        }

    return app
