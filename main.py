import os
import time
from fastapi import FastAPI, Request, Header, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import FileResponse, JSONResponse
from typing import Annotated, Optional
import traceback
import socketio
from starlette.middleware.base import BaseHTTPMiddleware

import config

# Import logging
from logging_config import logger, log_request_info, log_response_info

# Import routers
from routers import requests, spoc
from database.db import init_db, close_db, ping_db
from realtime.events import sio

STARTED_AT = time.monotonic()

# Create FastAPI app
app = FastAPI(
    title="Team Service Request API",
    description="""
    # Team Service Request API

    Requesters submit service requests (tea, coffee, WiFi, ...) for their team.
    The team's SPOC unlocks a session and completes or deletes requests, with
    live updates pushed over Socket.IO.

    ## Features

    - **Requests**: List and submit service requests; SPOCs update and delete them
    - **SPOC sessions**: Unlock with the shared PIN or a SPOC id, validate stored tokens
    - **Realtime**: `request:created`, `request:created:forSpoc`, `request:created:forTeam`,
      `request:updated` and `request:deleted` events, scoped by `team:<id>` and `spoc:<id>` rooms

    ## Authentication

    Updating and deleting requests requires a SPOC session token in the `x-spoc-token` header.
    Get one from the `/api/spoc/unlock` endpoint.
    """,
    version="1.0.0",
    openapi_tags=[
        {
            "name": "Requests",
            "description": "Operations related to service requests"
        },
        {
            "name": "SPOC",
            "description": "Operations related to SPOC sessions"
        },
        {
            "name": "Health",
            "description": "Liveness and database connectivity checks"
        }
    ]
)

# Logging middleware
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        log_request_info(request)
        try:
            response = await call_next(request)
            log_response_info(response)
            return response
        except Exception as e:
            logger.error(f"Request failed: {str(e)}")
            logger.error(traceback.format_exc())
            raise

# Add logging middleware
app.add_middleware(LoggingMiddleware)

# Configure CORS: the configured frontend origin, plus any localhost origin for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if config.FRONTEND_ORIGIN == "*" else [config.FRONTEND_ORIGIN],
    allow_origin_regex=r"http://localhost(:\d+)?",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])
app.include_router(spoc.router, prefix="/api/spoc", tags=["SPOC"])

@app.get("/health", tags=["Health"])
async def health():
    return {
        "ok": True,
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "env": config.APP_ENV
    }

# Database ping, guarded by the fixed test token
@app.get("/api/_test-mongo", tags=["Health"])
async def test_mongo(x_test_token: Annotated[Optional[str], Header()] = None):
    if not x_test_token or x_test_token != config.TEST_TOKEN:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": "Forbidden: x-test-token required"}
        )
    try:
        result = await ping_db()
        return {"ok": True, "result": result}
    except Exception as e:
        logger.error(f"GET /api/_test-mongo error: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": str(e)}
        )

# Serve the built frontend when present, otherwise a plain root message
if config.STATIC_DIR and os.path.isdir(config.STATIC_DIR):
    logger.info(f"Serving static files from {config.STATIC_DIR}")

    @app.get("/{path:path}", include_in_schema=False)
    async def frontend(path: str):
        # API and socket paths never fall through to the frontend
        if path.startswith("api/") or path.startswith("socket.io"):
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Not Found"})
        candidate = os.path.realpath(os.path.join(config.STATIC_DIR, path))
        static_root = os.path.realpath(config.STATIC_DIR)
        if path and candidate.startswith(static_root + os.sep) and os.path.isfile(candidate):
            return FileResponse(candidate)
        return FileResponse(os.path.join(config.STATIC_DIR, "index.html"))
else:
    @app.get("/", tags=["Health"])
    async def root():
        logger.info("Root endpoint accessed")
        return {"message": "API is running. Visit the frontend for UI."}

# Body validation errors are client errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())}
    )

# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={"detail": f"An unexpected error occurred: {str(exc)}"}
    )

# Startup event to initialize database
@app.on_event("startup")
async def startup_event():
    logger.info("Starting application...")
    try:
        await init_db()
    except Exception as e:
        # Uvicorn aborts startup and exits when this propagates
        logger.error(f"Failed to start server due to DB connection error: {str(e)}")
        raise
    logger.info("Application started successfully")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down server...")
    await close_db()

# Socket.IO shares the port with the API
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:asgi_app", host="0.0.0.0", port=config.PORT, reload=True)
