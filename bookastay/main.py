# bookastay/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookastay.config import ALLOWED_ORIGINS, SCHEDULER_ENABLED
from bookastay.exceptions import BookingError
from bookastay.logging_config import setup_logging
from bookastay.middleware import RequestIDMiddleware
from bookastay.routes.admin import router as admin_router
from bookastay.routes.bookings import router as bookings_router
from bookastay.routes.calendar import router as calendar_router
from bookastay.routes.health import router as health_router
from bookastay.routes.metrics import router as metrics_router
from bookastay.routes.verification import router as verification_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Book-A-Stay API",
    description="Availability, bookings, payment confirmation and calendar sync for a short-term rental",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(bookings_router, prefix="/api", tags=["Bookings"])
app.include_router(verification_router, prefix="/api/verification", tags=["Verification"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])
app.include_router(calendar_router, tags=["Calendar"])


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info(
        "booking_request_rejected",
        path=request.url.path,
        error=exc.kind,
        message=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "validation_error", "message": message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "internal_error", "message": "Internal server error"},
    )


@app.on_event("startup")
def startup_event() -> None:
    """Build the gateway clients once and start the periodic jobs."""
    from bookastay.db.engine import engine
    from bookastay.services.collaborators import build_collaborators
    from bookastay.services.scheduler import build_scheduler

    logger.info("FastAPI application starting up...")

    app.state.collaborators = build_collaborators()

    if SCHEDULER_ENABLED:
        app.state.scheduler = build_scheduler(engine, app.state.collaborators)
        app.state.scheduler.start()

    logger.info("FastAPI application initialized", scheduler_enabled=SCHEDULER_ENABLED)


@app.on_event("shutdown")
def shutdown_event() -> None:
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        scheduler.stop()
