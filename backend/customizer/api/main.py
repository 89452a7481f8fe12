"""
Customizer API - Main FastAPI Application Entry Point

Product customization backend: region authoring, variant/view resolution,
pricing and cart snapshots.
Combines all routers and middleware into a single FastAPI application.

Run with:
    uvicorn customizer.api.main:app --host 0.0.0.0 --port 8000 --app-dir backend
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from customizer.api.routes_cart import router as cart_router
from customizer.api.routes_product import router as product_router
from customizer.config import LOG_LEVEL
from customizer.errors import CustomizerError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Customizer API",
    description="Customization surface resolution for print-on-demand products",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS middleware (storefronts embed the customizer from any origin)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Global exception handlers
# ---------------------------------------------------------------------------
@app.exception_handler(CustomizerError)
async def customizer_error_handler(request: Request, exc: CustomizerError):
    """Return the error's own status and user-facing message."""
    error_type = type(exc).__name__
    logger.warning("[api] %s: %s | Path: %s", error_type, exc, request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error_type,
            "message": exc.message,
            "detail": str(exc) if exc.status_code < 500 else None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions and return structured JSON error responses."""
    error_type = type(exc).__name__

    error_messages = {
        "ValueError": "Невалидна заявка. Моля, проверете данните.",  # Invalid request
        "TimeoutError": "Заявката отне твърде дълго време.",  # Request timeout
    }
    message = error_messages.get(error_type, "Възникна неочаквана грешка.")  # Unexpected error

    logger.error("[api] ERROR %s: %s | Path: %s", error_type, exc, request.url.path)

    status_code = 400 if isinstance(exc, ValueError) else 500

    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_type,
            "message": message,
            "detail": str(exc) if status_code < 500 else None,
        },
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(product_router)
app.include_router(cart_router)


# ---------------------------------------------------------------------------
# Root & health-check endpoints
# ---------------------------------------------------------------------------
@app.get("/")
async def root():
    """Root endpoint returning basic API information."""
    return {
        "name": "Customizer API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "healthy"}


# ---------------------------------------------------------------------------
# Convenience: run directly with `python -m customizer.api.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("customizer.api.main:app", host="0.0.0.0", port=8000, reload=True)
