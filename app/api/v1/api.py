"""
API router aggregation for v1 endpoints
"""
from fastapi import APIRouter

# Import endpoint routers
from app.api.v1.endpoints import access_keys, document_numbers, documents, identifications, tenants

api_router = APIRouter()

# Stateless validation and formatting endpoints
api_router.include_router(identifications.router, prefix="/identifications", tags=["identifications"])
api_router.include_router(access_keys.router, prefix="/access-keys", tags=["access-keys"])
api_router.include_router(document_numbers.router, prefix="/document-numbers", tags=["document-numbers"])

# Registry and document identity endpoints
api_router.include_router(tenants.router, prefix="/tenants", tags=["tenants"])
api_router.include_router(documents.router, tags=["documents"])


@api_router.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "SRI Document Identity API v1",
        "version": "1.0.0",
        "docs": "/docs"
    }
