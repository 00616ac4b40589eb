# app/main.py
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.access_gate import access_gate_middleware
from app.routes import driver_router, pages_router
from app.database import ConnectionManager, insert_sample_data
from app.errors import create_error_response, describe_validation_error
from app.config import get_settings
from app.logging_config import setup_logging

settings = get_settings()
setup_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app.state.connections = ConnectionManager(
        settings.MONGODB_URI,
        settings.MONGODB_DB_NAME,
        timeout_ms=settings.MONGODB_TIMEOUT_MS,
    )
    if settings.SEED_SAMPLE_DATA:
        db = await app.state.connections.get_connection()
        await insert_sample_data(db)
    yield
    # Shutdown
    await app.state.connections.close()

app = FastAPI(title="Bus Driver KIR Tracker", lifespan=lifespan)

app.middleware("http")(access_gate_middleware)

app.include_router(pages_router, tags=["pages"])
app.include_router(driver_router, prefix=settings.API_PREFIX, tags=["drivers"])

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": create_error_response(
                message="Invalid request",
                details=describe_validation_error(exc, skip=("body",)),
                example="Check the listed fields and try again"
            )
        },
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": create_error_response(message="Internal server error")},
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD
    )
