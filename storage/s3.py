import logging
import os
import boto3
from fastapi import UploadFile
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from .base import BaseStorage, StorageError
from typing import List, Optional

logger = logging.getLogger(__name__)

# Get S3 config from environment variables
S3_BUCKET_PREFIX = os.getenv("S3_BUCKET_PREFIX", "outliers-")
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
AWS_REGION = os.getenv("AWS_REGION")


class S3Storage(BaseStorage):
    """Each logical bucket maps to the S3 bucket `<S3_BUCKET_PREFIX><name>`."""

    def __init__(self, s3_client=None, prefix: str = S3_BUCKET_PREFIX, region: Optional[str] = AWS_REGION):
        if s3_client is None:
            if not all([AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_REGION]):
                raise ValueError("S3 environment variables are not fully set.")
            s3_client = boto3.client(
                "s3",
                aws_access_key_id=AWS_ACCESS_KEY_ID,
                aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
                region_name=AWS_REGION
            )
        self.s3_client = s3_client
        self.prefix = prefix
        self.region = region

    def _bucket_name(self, bucket: str) -> str:
        return f"{self.prefix}{bucket}"

    def list_buckets(self) -> List[str]:
        try:
            response = self.s3_client.list_buckets()
        except NoCredentialsError:
            raise StorageError("AWS credentials not available.")
        names = [b["Name"] for b in response.get("Buckets", [])]
        return [name[len(self.prefix):] for name in names if name.startswith(self.prefix)]

    def create_bucket(self, bucket: str, public: bool = True) -> None:
        params = {"Bucket": self._bucket_name(bucket)}
        if self.region and self.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.s3_client.create_bucket(**params)
            if public:
                self.s3_client.delete_public_access_block(Bucket=self._bucket_name(bucket))
        except NoCredentialsError:
            raise StorageError("AWS credentials not available.")

    def save(self, file: UploadFile, filename: str, bucket: str, folder: Optional[str] = None) -> str:
        s3_key = f"{folder}/{filename}" if folder else filename
        try:
            self.s3_client.upload_fileobj(
                file.file,
                self._bucket_name(bucket),
                s3_key,
                ExtraArgs={'ContentType': file.content_type or "application/octet-stream", 'CacheControl': 'max-age=3600'}
            )
        except NoCredentialsError:
            raise StorageError("AWS credentials not available.")
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Upload failed: {e}")
        return self.get_public_url(bucket, s3_key)

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"https://{self._bucket_name(bucket)}.s3.{self.region}.amazonaws.com/{path}"
