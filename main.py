from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware
from core.config_loader import settings
from core.cache import TaggedCache
from core.errors import EngineError
from core.logging import RequestIdMiddleware, setup_logging

from user.router import user_router
from shift.router import shift_router
from requirement.router import requirement_router
from assignment.router import assignment_router
from timeclock.router import timeclock_router
from timesheet.router import timesheet_router
from fulfillment.router import fulfillment_router
from maintenance.router import maintenance_router
import models_bootstrap 

openapi_tags = [
    {
        "name": "Assignments",
        "description": "Staffing shifts with eligible, conflict-free workers",
    },
    {
        "name": "Time Tracking",
        "description": "Clock-in, clock-out and end-of-shift transitions",
    },
    {
        "name": "Timesheets",
        "description": "Company and manager approval of completed shifts",
    },
    {
        "name": "Health Checks",
        "description": "Application health checks",
    }
]

setup_logging()

app = FastAPI(title="CrewPlan", openapi_tags=openapi_tags)
app.state.cache = TaggedCache(settings.CACHE_TTL_SECONDS)

app.add_middleware(RequestIdMiddleware)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).strip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)


app.include_router(user_router, prefix="/api")
app.include_router(shift_router, prefix="/api")
app.include_router(requirement_router, prefix="/api")
app.include_router(assignment_router, prefix="/api")
app.include_router(timeclock_router, prefix="/api")
app.include_router(timesheet_router, prefix="/api")
app.include_router(fulfillment_router, prefix="/api")
app.include_router(maintenance_router, prefix="/api")



@app.get("/health", tags=['Health Checks'])
def read_root():
    return {"health": "true"}
