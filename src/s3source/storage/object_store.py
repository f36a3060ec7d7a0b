from __future__ import annotations
from botocore.client import BaseClient
from s3source.client.s3_client_builder import S3ClientOptions, get_client
from s3source.config.object_store_config import ObjectStoreConfig, get_object_store_config
from s3source.logging_config import get_logger
from s3source.source.object_locator import UNKNOWN_LENGTH, ObjectLocator


logger = get_logger(__name__)

class ObjectStore:
    def __init__(self, config: ObjectStoreConfig | None = None):
        self.config = config or get_object_store_config()
        self.bucket_name = self.config.bucket_name
        self.options: S3ClientOptions = self.config.to_client_options()

    @property
    def client(self) -> BaseClient:
        """
        Shared client for this store's connection settings.
        Stores with equal settings get the same client instance.
        """
        return get_client(self.options)

    def _bucket(self, bucket_name: str | None = None) -> str:
        return bucket_name or self.bucket_name

    def locate(self, key: str, length: int = UNKNOWN_LENGTH, bucket_name: str | None = None) -> ObjectLocator:
        locator = ObjectLocator(
            region=self.config.region,
            endpoint=self.config.endpoint,
            access_key_id=self.config.access_key_id,
            secret_access_key=self.config.secret_access_key,
            sts_role_arn=self.config.sts_role_arn,
            sts_session_name=self.config.sts_session_name,
            sts_region=self.config.sts_region,
            bucket_name=self._bucket(bucket_name),
            key=key,
            length=length,
        )
        locator.require_target()
        logger.debug("Located object: %s", locator)
        return locator
