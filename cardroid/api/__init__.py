"""
HTTP routes
"""
from .crm_routes import router as crm_router
from .financing_routes import router as financing_router
from .warranty_routes import router as warranty_router
from .whatsapp_routes import router as whatsapp_router
from .health_routes import router as health_router

__all__ = [
    "crm_router",
    "financing_router",
    "warranty_router",
    "whatsapp_router",
    "health_router",
]
