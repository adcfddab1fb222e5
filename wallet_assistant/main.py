from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import ai, dao, debug, health, wallet
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

setup_logging()

app = FastAPI(
    title="Wallet Assistant API",
    description="Chat-style answers about Ethereum wallets",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Error bodies are ``{"error": ...}`` across every route."""
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


app.include_router(health.router, tags=["Health"])
app.include_router(ai.router, tags=["Chat"])
app.include_router(dao.router, tags=["DAO"])
app.include_router(wallet.router, tags=["Wallet"])
app.include_router(debug.router, tags=["Debug"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Wallet Assistant API",
        "version": __version__,
        "description": "Chat-style answers about Ethereum wallets",
        "docs": "/docs",
        "health": "/healthz"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "wallet_assistant.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
