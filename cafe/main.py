from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from cafe.core.config import get_settings

# Routers
from cafe.routers.users import router as users_router
from cafe.routers.products import router as products_router
from cafe.routers.cart import router as cart_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Log which Supabase project and environment we are serving.

    Shutdown:
      - No special cleanup needed; Supabase clients are plain HTTP clients.
    """
    logger.info(
        "Startup: %s (%s) against %s",
        settings.PROJECT_NAME,
        settings.ENVIRONMENT,
        settings.SUPABASE_URL,
    )
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(products_router, prefix=settings.API_V1_STR)
app.include_router(cart_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "cafe-backend"}
