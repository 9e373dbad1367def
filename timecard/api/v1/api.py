from fastapi import APIRouter
from timecard.api.v1.endpoints import attendance

api_router = APIRouter()

# Register routes
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
