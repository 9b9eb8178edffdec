# =====================================
# backend/main.py - Entry Point
# =====================================
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from api.auth import router as auth_router
from api.activities import router as activities_router
from api.categories import router as categories_router
from api.analytics import router as analytics_router
from api.subscription import router as subscription_router
from api.webhook import router as webhook_router
from api.errors import register_error_handlers
from database.supabase_client import create_supabase_client, ping
from payments.razorpay_client import create_razorpay_client
from utils.logs import setup_logging
from utils.settings import settings

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup - clients are built once and shared through app.state
    try:
        app.state.supabase = create_supabase_client(settings.supabase_url, settings.supabase_key)
        ping(app.state.supabase)
        logger.info("✅ Supabase connection successful")
    except Exception as e:
        logger.error("❌ Supabase connection failed: %s", e)
        raise

    app.state.razorpay = create_razorpay_client(settings.razorpay_key_id, settings.razorpay_key_secret)
    logger.info("✅ Razorpay client ready")

    yield

    # Shutdown
    logger.info("🔄 Shutting down ChronoSync API")


app = FastAPI(
    title="ChronoSync API",
    description="Personal time tracking with analytics and paid plans",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
app.include_router(activities_router, prefix="/api/activities", tags=["Activities"])
app.include_router(categories_router, prefix="/api/categories", tags=["Categories"])
app.include_router(analytics_router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(subscription_router, prefix="/api/subscription", tags=["Subscription"])
app.include_router(webhook_router, prefix="/api/webhook", tags=["Webhook"])


@app.get("/")
def root():
    return {
        "message": "⏱️ ChronoSync API is running!",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "ChronoSync"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
