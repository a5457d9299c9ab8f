from fastapi import APIRouter

from hcp.api.v1.endpoints import (
    audit_logs,
    auth,
    billing,
    records,
    versions,
)


api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router, prefix="/auth")
api_router.include_router(records.router, prefix="/records")
api_router.include_router(audit_logs.router, prefix="/audit-logs")
api_router.include_router(versions.router, prefix="/versions")
api_router.include_router(billing.router, prefix="/billing")
