from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import create_deletion_token
from app.db.session import get_db
from app.schemas.auth import (
    ChangeDeletionPasswordIn,
    DeletionStatusOut,
    PasswordResetConfirmIn,
    PasswordResetRequestIn,
    PasswordResetRequestOut,
    SimpleOKOut,
    VerifyDeletionIn,
    VerifyDeletionOut,
)
from app.services import deletion_guard
from app.services.errors import CredentialError, ForbiddenError, InvalidArgument
from app.services.mailer import send_reset_email

router = APIRouter()


@router.post("/verify-deletion", response_model=VerifyDeletionOut)
def verify_deletion(payload: VerifyDeletionIn, db: Session = Depends(get_db)):
    if not payload.password:
        raise HTTPException(400, "Password is required")
    if not deletion_guard.verify_deletion_password(db, payload.password):
        raise HTTPException(401, "Invalid deletion password")
    return VerifyDeletionOut(
        deletion_token=create_deletion_token(),
        expires_in=settings.DELETION_TOKEN_MINUTES * 60,
    )


@router.post("/change-deletion-password", response_model=SimpleOKOut)
def change_deletion_password(payload: ChangeDeletionPasswordIn, db: Session = Depends(get_db)):
    try:
        deletion_guard.change_deletion_password(db, payload.current_password, payload.new_password)
    except CredentialError as e:
        raise HTTPException(401, str(e))
    except InvalidArgument as e:
        raise HTTPException(400, str(e))
    return SimpleOKOut(message="Deletion password changed successfully")


@router.post("/request-password-reset", response_model=PasswordResetRequestOut)
def request_password_reset(
    payload: PasswordResetRequestIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    try:
        issued = deletion_guard.request_reset(db, payload.email)
    except ForbiddenError as e:
        raise HTTPException(403, str(e))

    out = PasswordResetRequestOut(message="Password reset link has been sent to your email")
    if settings.ENV == "dev":
        out.dev_token = issued.token
    else:
        background_tasks.add_task(send_reset_email, issued.email, issued.token)
    return out


@router.post("/reset-deletion-password", response_model=SimpleOKOut)
def reset_deletion_password(payload: PasswordResetConfirmIn, db: Session = Depends(get_db)):
    try:
        deletion_guard.reset_with_token(db, payload.token, payload.new_password)
    except InvalidArgument as e:
        raise HTTPException(400, str(e))
    return SimpleOKOut(message="Password reset successfully")


@router.get("/deletion-status", response_model=DeletionStatusOut)
def deletion_status(db: Session = Depends(get_db)):
    has_password, is_default = deletion_guard.deletion_status(db)
    return DeletionStatusOut(has_password=has_password, is_default=is_default)
