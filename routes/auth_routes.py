import logging

import jwt
from fastapi import APIRouter, BackgroundTasks
from fastapi.params import Depends
from jwt import ExpiredSignatureError, InvalidTokenError
from sqlalchemy.orm import Session
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_rate_limiter
from models.User import User
from schemas.PaginatedResponseSchemas import MessageResponse
from schemas.UserSchemas import (
    ForgotPasswordRequest,
    RefreshTokenRequest,
    RefreshTokenResponse,
    RegisterResponse,
    RequestDetails,
    ResetPasswordRequest,
    TokenSchema,
    UserCreate,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from services.email_services import send_otp_email, send_password_changed_notification
from services.password_reset_services import FORGOT_PASSWORD_MESSAGE, PasswordResetError, PasswordResetService
from services.rate_limit_services import RateLimiter
from utils import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    get_hashed_password,
    get_jkt_now,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=RegisterResponse)
def register_user(user: UserCreate, session: Session = Depends(get_db)):
    existing_user = session.query(User).filter(User.email == user.email).first()
    if existing_user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email sudah terdaftar")

    new_user = User(
        name=user.name,
        email=user.email,
        password=get_hashed_password(user.password),
    )

    session.add(new_user)
    session.commit()
    session.refresh(new_user)
    logger.info("User %s registered", new_user.id)

    return {"message": "Registrasi berhasil", "user": new_user}


@router.post("/login", response_model=TokenSchema)
def login(request: RequestDetails, db: Session = Depends(get_db)):
    email = request.email.strip().lower()
    user = db.query(User).filter(User.email == email, User.is_active == True).first()
    if user is None or not verify_password(request.password, user.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email atau password salah")

    user.last_login = get_jkt_now()
    access = create_access_token(user.id, user.email)
    refresh = create_refresh_token(user.id, user.email)
    db.commit()

    return {
        "access_token": access,
        "refresh_token": refresh,
    }


@router.post("/refresh", response_model=RefreshTokenResponse)
def refresh_token(request: RefreshTokenRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_refresh_token(request.refresh_token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token expired")
    except (InvalidTokenError, jwt.PyJWTError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    # Check if user still exists and is active
    user = db.query(User).filter(User.id == int(user_id), User.is_active == True).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return {"access_token": create_access_token(user.id, user.email)}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    request: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    limiter.enforce(f"forgot-password:{request.email}")

    otp = PasswordResetService(db).request_reset(request.email)
    if otp is not None:
        background_tasks.add_task(send_otp_email, request.email, otp)

    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(
    request: VerifyOtpRequest,
    db: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    limiter.enforce(f"verify-otp:{request.email}")

    try:
        reset_token = PasswordResetService(db).verify_otp(request.email, request.otp)
    except PasswordResetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return {"message": "OTP berhasil diverifikasi", "reset_token": reset_token}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    request: ResetPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    try:
        user = PasswordResetService(db).reset_password(request.email, request.reset_token, request.new_password)
    except PasswordResetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    background_tasks.add_task(send_password_changed_notification, user.email)
    return {"message": "Password berhasil diubah. Silakan login dengan password baru."}
