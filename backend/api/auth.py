# =====================================
# backend/api/auth.py - Authentication Router
# =====================================
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from api.errors import server_error
from database.supabase_client import get_db
from models.schemas import UserCreate, UserLogin, TokenResponse, UserResponse, Plan, SubscriptionStatus
from utils.auth_utils import create_access_token, verify_token, hash_password, verify_password, TokenError

router = APIRouter()
security = HTTPBearer()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(user_data: UserCreate, db: Client = Depends(get_db)):
    """New account on the free plan, no subscription yet"""
    try:
        existing = db.table('users').select('id').eq('email', user_data.email).execute()
        if existing.data:
            raise HTTPException(status_code=400, detail="Email already registered")

        user_result = db.table('users').insert({
            'name': user_data.name,
            'email': user_data.email,
            'password_hash': hash_password(user_data.password),
            'plan': Plan.FREE.value,
            'subscription_status': SubscriptionStatus.NONE.value,
        }).execute()

        if not user_result.data:
            raise HTTPException(status_code=500, detail="Failed to create user")

        user = user_result.data[0]
        return TokenResponse(
            access_token=create_access_token(user['id']),
            user=UserResponse(**user)
        )

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Registration failed")


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: Client = Depends(get_db)):
    try:
        user_result = db.table('users').select('*').eq('email', credentials.email).execute()

        if not user_result.data:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        user = user_result.data[0]

        if not verify_password(credentials.password, user.get('password_hash')):
            raise HTTPException(status_code=401, detail="Invalid credentials")

        return TokenResponse(
            access_token=create_access_token(user['id']),
            user=UserResponse(**user)
        )

    except HTTPException:
        raise
    except Exception as e:
        raise server_error(e, "Login failed")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Client = Depends(get_db),
) -> UserResponse:
    """Dependency for protected routes; reloads the user so plan changes show up immediately"""
    try:
        payload = verify_token(credentials.credentials)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    try:
        user_result = db.table('users').select('*').eq('id', user_id).execute()
    except Exception as e:
        raise server_error(e, "User lookup failed")

    if not user_result.data:
        raise HTTPException(status_code=401, detail="User not found")

    return UserResponse(**user_result.data[0])


@router.get("/me")
async def me(current_user: UserResponse = Depends(get_current_user)):
    return {"success": True, "data": current_user.model_dump(mode="json")}
