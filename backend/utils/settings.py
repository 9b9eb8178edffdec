# =====================================
# backend/utils/settings.py - Runtime Configuration
# =====================================
"""
Typed runtime configuration.

Values come from the environment (a local `.env` is loaded first). Code
imports `settings` and reads attributes instead of calling os.getenv, so
tests can monkeypatch a single object.
"""
from pydantic import BaseModel
from typing import List
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_ANON_KEY", "")

    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "your-super-secret-key-change-in-production")
    access_token_expire_hours: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))

    razorpay_key_id: str = os.getenv("RAZORPAY_KEY_ID", "")
    razorpay_key_secret: str = os.getenv("RAZORPAY_KEY_SECRET", "")
    razorpay_webhook_secret: str = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")
    subscription_total_count: int = int(os.getenv("SUBSCRIPTION_TOTAL_COUNT", "12"))

    max_range_days: int = int(os.getenv("MAX_RANGE_DAYS", "366"))

    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
        if origin.strip()
    ]
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
