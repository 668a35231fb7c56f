import logging
import os
import shutil
from fastapi import UploadFile
from .base import BaseStorage, StorageError
from typing import List, Optional

logger = logging.getLogger(__name__)

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")


class LocalStorage(BaseStorage):
    """Buckets are subdirectories of the upload dir, served under /uploads."""

    def __init__(self, upload_dir: str = UPLOAD_DIR, base_url: str = PUBLIC_BASE_URL):
        self.upload_dir = upload_dir
        self.base_url = base_url
        os.makedirs(self.upload_dir, exist_ok=True)

    def list_buckets(self) -> List[str]:
        return sorted(
            entry for entry in os.listdir(self.upload_dir)
            if os.path.isdir(os.path.join(self.upload_dir, entry))
        )

    def create_bucket(self, bucket: str, public: bool = True) -> None:
        os.makedirs(os.path.join(self.upload_dir, bucket), exist_ok=True)

    def save(self, file: UploadFile, filename: str, bucket: str, folder: Optional[str] = None) -> str:
        relative_path = f"{folder}/{filename}" if folder else filename
        file_path = os.path.join(self.upload_dir, bucket, relative_path)
        try:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
        except OSError as e:
            raise StorageError(f"Falha ao gravar {relative_path} em {bucket}: {e}") from e
        return self.get_public_url(bucket, relative_path)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}/uploads/{bucket}/{path}"
