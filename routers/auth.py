from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_bearer_token, get_current_user
from models.users import User
from schemas.auth import LoginRequest, LoginResponse, UserOut
from schemas.common import ERROR_RESPONSES, SuccessEnvelope
from services import auth_service

router = APIRouter(prefix="/auth", tags=["인증"], responses=ERROR_RESPONSES)


# ✅ [LOGIN] 로그인 → Bearer 토큰 발급
@router.post("/login", response_model=SuccessEnvelope[LoginResponse])
def login(request: LoginRequest, db: Session = Depends(get_db)):
    token, user = auth_service.login(db, request.email, request.password)
    profile = auth_service.profile_of(db, user)
    return {
        "status": "success",
        "data": LoginResponse(
            token=token,
            user=UserOut.model_validate(user),
            profile_id=profile.id if profile else None,
        ),
        "message": "Login successful",
    }


# ✅ [LOGOUT] 토큰 폐기
@router.post("/logout")
def logout(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)):
    auth_service.logout(db, token)
    return {"status": "success", "data": None, "message": "Logged out"}


# ✅ [ME] 현재 로그인 사용자
@router.get("/me", response_model=SuccessEnvelope[UserOut])
def me(current_user: User = Depends(get_current_user)):
    return {"status": "success", "data": UserOut.model_validate(current_user)}
