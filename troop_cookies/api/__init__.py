"""
Troop Cookie Tracker API Application Factory
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .members import router as members_router
from .inventory import router as inventory_router
from .trades import router as trades_router
from .audit import router as audit_router
from .schedule import router as schedule_router
from .messages import router as messages_router
from .admin import router as admin_router
from .. import __version__


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Troop Cookie Tracker API",
        description="Cookie inventory, trades, booths and troop messaging",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(members_router, prefix="/members", tags=["Members"])
    app.include_router(inventory_router, prefix="/inventory", tags=["Inventory"])
    app.include_router(trades_router, prefix="/trades", tags=["Trades"])
    app.include_router(audit_router, prefix="/audit", tags=["Audit"])
    app.include_router(schedule_router, prefix="/schedule", tags=["Schedule"])
    app.include_router(messages_router, prefix="/social", tags=["Social"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "troop_cookies_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Troop Cookie Tracker API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "members": "/members",
                "inventory": "/inventory",
                "trades": "/trades",
                "audit": "/audit",
                "schedule": "/schedule",
                "social": "/social",
                "admin": "/admin",
            }
        }

    return app
