import logging

from fastapi import APIRouter, BackgroundTasks
from fastapi.params import Depends
from sqlalchemy.orm import Session
from starlette import status
from starlette.exceptions import HTTPException

from database import get_db
from dependencies import get_current_user, rate_limit_user
from models.User import User
from schemas.PaginatedResponseSchemas import MessageResponse
from schemas.UserSchemas import AccountOut, AccountUpdate, AccountUpdateResponse, ChangePasswordRequest
from services.email_services import send_password_changed_notification
from utils import get_hashed_password, get_jkt_now, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AccountOut)
def get_account(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("", response_model=AccountUpdateResponse, dependencies=[Depends(rate_limit_user)])
def update_account(
    account_data: AccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    update_data = account_data.model_dump(exclude_unset=True)

    if update_data.get("email") and update_data["email"] != current_user.email:
        taken = (
            db.query(User)
            .filter(User.email == update_data["email"], User.id != current_user.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email sudah digunakan oleh akun lain")

    if "name" in update_data and update_data["name"] is not None:
        current_user.name = update_data["name"]
    if "email" in update_data and update_data["email"] is not None:
        current_user.email = update_data["email"]
    if "phone" in update_data:
        # empty string clears the number
        current_user.phone = update_data["phone"] or None

    db.commit()
    db.refresh(current_user)
    logger.info("User %s updated profile fields %s", current_user.id, sorted(update_data))

    return {"message": "Profil berhasil diperbarui", "user": current_user}


@router.post("/change-password", response_model=MessageResponse, dependencies=[Depends(rate_limit_user)])
def change_password(
    request: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(request.current_password, current_user.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password lama tidak benar")

    if verify_password(request.new_password, current_user.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password baru tidak boleh sama dengan password lama",
        )

    current_user.password = get_hashed_password(request.new_password)
    current_user.password_changed_at = get_jkt_now()
    db.commit()
    logger.info("User %s changed password", current_user.id)

    background_tasks.add_task(send_password_changed_notification, current_user.email)
    return {"message": "Password berhasil diubah"}
