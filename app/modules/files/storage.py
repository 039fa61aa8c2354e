import boto3
from botocore.exceptions import ClientError
from supabase import Client
from app.config import settings
from typing import List
import logging

logger = logging.getLogger(__name__)


class SupabaseFileStorage:
    """Room files in a Supabase Storage bucket (public URLs)."""

    def __init__(self, supabase: Client, bucket_name: str = None):
        self.bucket_name = bucket_name or settings.room_files_bucket
        self.bucket = supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload file and return its public URL"""
        try:
            self.bucket.upload(
                path=key,
                file=file_content,
                file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
        except Exception as e:
            logger.error(f"Failed to upload file to bucket {self.bucket_name}: {str(e)}")
            raise
        return self.bucket.get_public_url(key)

    def delete_file(self, key: str) -> bool:
        return self.delete_files([key])

    def delete_files(self, keys: List[str]) -> bool:
        if not keys:
            return True
        try:
            self.bucket.remove(keys)
            return True
        except Exception as e:
            logger.error(f"Failed to delete {len(keys)} file(s) from bucket {self.bucket_name}: {str(e)}")
            return False


class S3FileStorage:
    """Room files in an S3 bucket."""

    def __init__(self):
        if not all([settings.aws_access_key_id, settings.aws_secret_access_key, settings.s3_bucket_name]):
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/octet-stream") -> str:
        """Upload file to S3 and return its public URL"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
                CacheControl="max-age=3600"
            )
            return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"
        except ClientError as e:
            logger.error(f"Failed to upload file to S3: {str(e)}")
            raise

    def delete_file(self, key: str) -> bool:
        return self.delete_files([key])

    def delete_files(self, keys: List[str]) -> bool:
        if not keys:
            return True
        try:
            self.s3_client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": key} for key in keys]}
            )
            return True
        except ClientError as e:
            logger.error(f"Failed to delete {len(keys)} file(s) from S3: {str(e)}")
            return False


def get_file_storage(supabase: Client):
    if settings.storage_backend == "s3":
        return S3FileStorage()
    return SupabaseFileStorage(supabase)
