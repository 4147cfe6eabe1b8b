from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from account_store import AccountStore
from auth_service import AuthService
from config import settings
from notifier import Notifier, get_notifier
from schemas.account import Register, VerifyOTP, Login, ForgotPassword, ResetPassword, Token, Message, Profile, DisplayName
from security import SessionIssuer, get_bearer_token, get_session_issuer

router = APIRouter()

def get_auth_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> AuthService:
    return AuthService(
        store=AccountStore(db),
        notifier=notifier,
        issuer=issuer,
        notify_timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        require_verified_login=settings.REQUIRE_VERIFIED_LOGIN,
    )

@router.post("/register", response_model=Message)
async def register(payload: Register, service: AuthService = Depends(get_auth_service)):
    """Create an account and email it a one-time code"""
    await service.register(payload.name, payload.email, payload.password)
    return {"message": "User registered successfully. Please verify your OTP."}

@router.post("/verify-otp", response_model=Token)
async def verify_otp(payload: VerifyOTP, service: AuthService = Depends(get_auth_service)):
    token = await service.verify_otp(payload.email, payload.otp)
    return {"token": token}

@router.post("/login", response_model=Token)
async def login(payload: Login, service: AuthService = Depends(get_auth_service)):
    token = await service.login(payload.email, payload.password)
    return {"token": token}

@router.post("/forgot-password", response_model=Message)
async def forgot_password(payload: ForgotPassword, service: AuthService = Depends(get_auth_service)):
    """Send OTP for password reset"""
    await service.forgot_password(payload.email)
    return {"message": "OTP sent to email"}

@router.post("/reset-password", response_model=Message)
async def reset_password(payload: ResetPassword, service: AuthService = Depends(get_auth_service)):
    """Reset password using OTP verification"""
    await service.reset_password(payload.email, payload.otp, payload.new_password)
    return {"message": "Password reset successfully"}

@router.get("/profile", response_model=Profile)
async def get_profile(token: str = Depends(get_bearer_token), service: AuthService = Depends(get_auth_service)):
    """Get current user's public profile"""
    return await service.get_profile(token)

@router.get("/user", response_model=DisplayName)
async def get_user(token: str = Depends(get_bearer_token), service: AuthService = Depends(get_auth_service)):
    account = await service.get_profile(token)
    return {"name": account.name}
