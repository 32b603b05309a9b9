import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from splitledger.core.config import Settings, get_settings
from splitledger.core.exceptions import LedgerError
from splitledger.db.database import Database
from splitledger.rabbitmq.publisher import LedgerEventPublisher
from splitledger.api.v1.routes.groups import router as groups_router
from splitledger.api.v1.routes.expenses import router as expenses_router
from splitledger.api.v1.routes.settlements import router as settlements_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.database.init()
        if settings.ledger_events_enabled:
            app.state.publisher = LedgerEventPublisher(settings.rabbitmq_url, settings.ledger_exchange)
        logger.info(f"{settings.app_name} started")
        yield
        try:
            if app.state.publisher is not None:
                app.state.publisher.disconnect()
        finally:
            app.state.publisher = None
            app.state.database.dispose()
            logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title="Split Ledger - Shared Expenses",
        description="Records group expenses, tracks split settlement and suggests transfers",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = Database(settings.database_url)
    app.state.publisher = None

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.include_router(groups_router)
    app.include_router(expenses_router)
    app.include_router(settlements_router)

    @app.get("/")
    def read_root():
        return {"message": "Split Ledger API", "version": "1.0.0"}

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "database": app.state.database.check_connection()}

    return app
