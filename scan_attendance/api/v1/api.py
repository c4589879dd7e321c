from fastapi import APIRouter
from scan_attendance.api.v1.endpoints import attendance, requests, maintenance

api_router = APIRouter()

# Register routes
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(requests.router, prefix="/requests", tags=["Attendance Requests"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
