import logging
import re
import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from models.user import User, Profile
from schemas.user import SignUpRequest, SignInRequest, TokenUserResponse, SessionUser
from utils.auth import hash_password, verify_password, create_access_token
from utils.realtime import hub, auth_channel

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "Usuário"


def publish_auth_event(user_id: str, event_name: str) -> None:
    hub.publish(auth_channel(user_id), {"event": event_name, "user_id": user_id})


def _username_from_email(email: str) -> str:
    # Só caracteres de palavra, para o @handle funcionar nas menções
    return re.sub(r"\W+", "_", email.split("@")[0]).strip("_")


def _available_username(db: Session, wanted: str) -> str:
    base = wanted.strip() or DEFAULT_USERNAME
    candidate = base
    while db.query(Profile.id).filter(Profile.username == candidate).first():
        candidate = f"{base}_{uuid.uuid4().hex[:4]}"
    return candidate


def _session_response(user: User) -> TokenUserResponse:
    return TokenUserResponse(
        access_token=create_access_token(user),
        token_type="bearer",
        user=SessionUser.model_validate(user),
    )


def sign_up(payload: SignUpRequest, db: Session) -> TokenUserResponse:
    email = payload.email.lower()
    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Este email já está cadastrado.")

    user = User(email=email, hashed_password=hash_password(payload.password))
    db.add(user)
    db.flush()

    # O perfil nasce junto com a conta, com o mesmo id
    username = _available_username(db, payload.username or _username_from_email(email))
    db.add(Profile(id=user.id, username=username))
    db.commit()
    db.refresh(user)

    logger.info("Conta criada: %s (%s)", user.id, username)
    publish_auth_event(user.id, "SIGNED_IN")
    return _session_response(user)


def sign_in(payload: SignInRequest, db: Session) -> TokenUserResponse:
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha inválidos.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    publish_auth_event(user.id, "SIGNED_IN")
    return _session_response(user)


def get_session(current_user: User) -> SessionUser:
    return SessionUser.model_validate(current_user)


def sign_out(db: Session, current_user: User) -> dict:
    # Invalida todos os tokens emitidos até agora
    current_user.session_version = (current_user.session_version or 0) + 1
    current_user.fcm_token = None
    current_user.fcm_token_updated_at = None
    db.add(current_user)
    db.commit()

    publish_auth_event(current_user.id, "SIGNED_OUT")
    return {"message": "Sessão encerrada."}
