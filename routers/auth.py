from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models import User
from schemas.user import SignUpRequest, SignInRequest, TokenUserResponse, SessionUser
from services import auth as auth_service
from utils.auth import get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=TokenUserResponse, status_code=201)
def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)):
    return auth_service.sign_up(payload, db)


@router.post("/signin", response_model=TokenUserResponse)
def sign_in(payload: SignInRequest, db: Session = Depends(get_db)):
    return auth_service.sign_in(payload, db)


@router.get("/session", response_model=SessionUser)
def get_session(current_user: User = Depends(get_current_user)):
    return auth_service.get_session(current_user)


@router.post("/signout")
def sign_out(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return auth_service.sign_out(db, current_user)
