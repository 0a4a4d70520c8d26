import io
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.config.config_settings.config_schema import S3Params
from app.core.logger import logger
from app.infra.storage.storage_interface import BlobStore, BlobStoreError


class S3BlobStore(BlobStore):
    """
    基于 boto3 的 S3 兼容对象存储 (AWS S3 / MinIO)。
    boto3 是同步库，调用方需放到线程池中执行。
    """

    def __init__(self, params: S3Params, client=None):
        self.params = params
        self.bucket_name = params.bucket_name
        self.endpoint_url = self._get_base_url()

        # Boto3 的 'auto' 对应的是 None
        addressing_style = None if params.path_style == "auto" else params.path_style
        client_config = BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": addressing_style},
            connect_timeout=params.connect_timeout,
            read_timeout=params.read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
        )

        self.s3 = client or boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            aws_access_key_id=params.access_key,
            aws_secret_access_key=params.secret_key,
            config=client_config,
            region_name=params.region,
        )

    def _get_base_url(self) -> Optional[str]:
        # AWS S3 不需要 endpoint
        if not self.params.endpoint:
            return None
        protocol = "https" if self.params.secure else "http"
        return f"{protocol}://{self.params.endpoint}"

    @property
    def qualifier(self) -> str:
        return self.bucket_name

    def put(self, key: str, data: bytes, content_type: str) -> None:
        logger.info(f"[S3 Driver] Putting object: {key} ({len(data)} bytes)")
        try:
            self.s3.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[S3 Driver] Failed to put object {key}: {e}")
            raise BlobStoreError(f"put_object failed for {key}") from e

    def get(self, key: str) -> bytes:
        try:
            response = self.s3.get_object(Bucket=self.bucket_name, Key=key)
            with io.BytesIO() as buffer:
                for chunk in response["Body"].iter_chunks():
                    buffer.write(chunk)
                return buffer.getvalue()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[S3 Driver] Failed to get object {key}: {e}")
            raise BlobStoreError(f"get_object failed for {key}") from e

    def delete(self, key: str) -> None:
        logger.info(f"[S3 Driver] Removing object: {key}")
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"[S3 Driver] Failed to remove object {key}: {e}")
            raise BlobStoreError(f"delete_object failed for {key}") from e

    def create_bucket_if_not_exists(self) -> None:
        try:
            self.s3.head_bucket(Bucket=self.bucket_name)
            logger.debug(f"[S3 Driver] Bucket '{self.bucket_name}' already exists.")
        except ClientError as e:
            if e.response["Error"]["Code"] not in ("404", "NoSuchBucket"):
                logger.error(f"[S3 Driver] Error checking bucket: {e}")
                raise

            logger.info(f"[S3 Driver] Bucket '{self.bucket_name}' not found. Creating...")
            # 对于非 us-east-1 的 AWS S3，创建时必须指定区域
            if self.params.region != "us-east-1" and not self.params.endpoint:
                self.s3.create_bucket(
                    Bucket=self.bucket_name,
                    CreateBucketConfiguration={"LocationConstraint": self.params.region},
                )
            else:
                self.s3.create_bucket(Bucket=self.bucket_name)
            logger.info(f"[S3 Driver] Successfully created bucket '{self.bucket_name}'.")
