# tripledger/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tripledger.config import settings
from tripledger.db.session import init_db
from tripledger.errors import BookingError, PersistenceError, ValidationError
from tripledger.routes import admin, bookings, dashboard

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="TripLedger",
    version="1.0.0",
    description="Booking lifecycle and trip dashboard service"
)

# Mount routes
app.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


@app.on_event("startup")
def startup_event():
    init_db()


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    body = {"error": exc.message}
    if isinstance(exc, ValidationError):
        body["validationErrors"] = exc.errors
    if isinstance(exc, PersistenceError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.__cause__ or exc}")
        if exc.validation_errors:
            body["validationErrors"] = exc.validation_errors
        if settings.is_development and exc.__cause__ is not None:
            body["details"] = str(exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.get("/")
def root():
    return {"message": "TripLedger is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
