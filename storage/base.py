import logging
from abc import ABC, abstractmethod
from fastapi import UploadFile
from typing import List, Optional

logger = logging.getLogger(__name__)

# Buckets que o app precisa para artigos, avatares e banners
REQUIRED_BUCKETS = ["images", "user-avatars", "user-banners"]


class StorageError(Exception):
    pass


class BaseStorage(ABC):
    @abstractmethod
    def list_buckets(self) -> List[str]:
        """Returns the names of the existing buckets."""
        pass

    @abstractmethod
    def create_bucket(self, bucket: str, public: bool = True) -> None:
        pass

    @abstractmethod
    def save(self, file: UploadFile, filename: str, bucket: str, folder: Optional[str] = None) -> str:
        """Saves the file into the bucket and returns its public URL."""
        pass

    @abstractmethod
    def get_public_url(self, bucket: str, path: str) -> str:
        pass

    def ensure_bucket_exists(self, bucket: str) -> bool:
        try:
            if bucket in self.list_buckets():
                return True
            self.create_bucket(bucket, public=True)
            logger.info("Bucket %s criado com sucesso", bucket)
            return True
        except Exception as e:
            logger.error("Erro ao garantir bucket %s: %s", bucket, e)
            return False

    def create_required_buckets(self) -> bool:
        try:
            existing = self.list_buckets()
        except Exception as e:
            logger.error("Erro ao verificar buckets: %s", e)
            return False

        for bucket in REQUIRED_BUCKETS:
            if bucket in existing:
                continue
            try:
                self.create_bucket(bucket, public=True)
                logger.info("Bucket %s criado com sucesso", bucket)
            except Exception as e:
                logger.error("Erro ao criar bucket %s: %s", bucket, e)
        return True
