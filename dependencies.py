import logging
import os
from functools import lru_cache
from fastapi import Depends
from storage.base import BaseStorage
from storage.local import LocalStorage
from storage.s3 import S3Storage

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_storage_manager_instance() -> BaseStorage:
    storage_type = os.getenv("STORAGE_TYPE", "local")
    if storage_type == "s3":
        storage = S3Storage()
    elif storage_type == "local":
        storage = LocalStorage()
    else:
        raise ValueError(f"Unknown storage type: {storage_type}")
    logger.info("Storage backend: %s", storage_type)
    return storage


def get_storage_manager(storage: BaseStorage = Depends(get_storage_manager_instance)) -> BaseStorage:
    return storage


def provision_storage() -> bool:
    """Creates the buckets the app uploads into; called once at startup."""
    try:
        storage = get_storage_manager_instance()
    except ValueError as e:
        logger.error("Armazenamento indisponível: %s", e)
        return False
    return storage.create_required_buckets()
