"""
API Routes Module
"""
from .health import router as health_router
from .dashboard import router as dashboard_router
from .reports import router as reports_router

__all__ = [
    "health_router",
    "dashboard_router",
    "reports_router",
]
