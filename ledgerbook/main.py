"""
Ledgerbook
Main Application Entry Point
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import config
from .utils.constants import APP_NAME, APP_VERSION
from .utils.logger import setup_logger, logger
from .services.database_service import database_service
from .services.scheduler_service import scheduler_service
from .controllers import (
    voucher_router,
    approval_router,
    template_router,
    recurring_router,
    reconciliation_router,
    report_router,
    account_router,
    schedule_router,
    health_router,
    audit_router,
    register_error_handlers,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logger(
        level=config.logging.level,
        log_file=config.logging.file,
        max_size=config.logging.max_size,
        backup_count=config.logging.backup_count,
        console=config.logging.console,
        colorize=config.logging.colorize
    )
    logger.info(f"{APP_NAME} starting...")
    await database_service.connect()
    await database_service.create_tables()
    if config.scheduler.enabled:
        scheduler_service.start()
    logger.info(f"API running on http://{config.api.host}:{config.api.port}")
    yield
    logger.info(f"{APP_NAME} shutting down...")
    scheduler_service.stop()
    await database_service.disconnect()


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description="Double-entry vouchers, ledger, approvals, recurring vouchers and bank reconciliation",
    version=APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(voucher_router, prefix="/api/vouchers", tags=["Vouchers"])
app.include_router(approval_router, prefix="/api/approvals", tags=["Approvals"])
app.include_router(template_router, prefix="/api/templates", tags=["Templates"])
app.include_router(recurring_router, prefix="/api/recurring", tags=["Recurring Vouchers"])
app.include_router(reconciliation_router, prefix="/api/reconciliations", tags=["Bank Reconciliation"])
app.include_router(report_router, prefix="/api/reports", tags=["Reports"])
app.include_router(account_router, prefix="/api/accounts", tags=["Accounts"])
app.include_router(schedule_router, prefix="/api/schedule", tags=["Schedule"])
app.include_router(health_router, prefix="/api/health", tags=["Health"])
app.include_router(audit_router, prefix="/api/audit", tags=["Audit Trail"])


@app.get("/")
async def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/api/info")
async def info():
    """System information"""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "database": {
            "path": config.database.path
        },
        "accounting": {
            "cancel_mode": config.accounting.cancel_mode,
            "money_tolerance": config.accounting.money_tolerance
        },
        "scheduler": scheduler_service.get_status()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.api.host, port=config.api.port)
