import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, messaging

from database import SessionLocal
from models.user import User

logger = logging.getLogger(__name__)

FCM_CREDENTIALS_PATH = os.getenv("FCM_CREDENTIALS_PATH")

_app: Optional[firebase_admin.App] = None


def _get_app() -> Optional[firebase_admin.App]:
    """Initialize Firebase Admin SDK once; push is disabled without credentials."""
    global _app
    if _app is not None:
        return _app
    if not FCM_CREDENTIALS_PATH:
        return None
    try:
        cred = credentials.Certificate(FCM_CREDENTIALS_PATH)
        _app = firebase_admin.initialize_app(cred)
    except ValueError:
        # App is already initialized, which can happen in development with hot-reloading
        _app = firebase_admin.get_app()
    except OSError as e:
        logger.error("Credenciais FCM inválidas em %s: %s", FCM_CREDENTIALS_PATH, e)
        return None
    return _app


def _clear_token(user_id: str) -> None:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user:
            user.fcm_token = None
            user.fcm_token_updated_at = None
            db.commit()
    finally:
        db.close()


def send_push_notification(user_id: str, device_token: str, title: str, body: str) -> bool:
    app = _get_app()
    if app is None:
        return False
    try:
        message_obj = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            token=device_token,
        )
        response = messaging.send(message_obj, app=app)
        logger.info("Successfully sent message: %s", response)
        return True
    except messaging.UnregisteredError:
        logger.info("FCM token for user %s is unregistered. Clearing token.", user_id)
        _clear_token(user_id)
    except Exception as e:
        logger.error("Error sending message: %s", e)
    return False
