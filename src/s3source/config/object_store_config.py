from __future__ import annotations
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from s3source.client.s3_client_builder import S3ClientOptions

ENV_PREFIX = "S3SOURCE_"


@dataclass(frozen=True)
class ObjectStoreConfig:
    bucket_name: str
    endpoint: str | None = None
    region: str | None = None
    access_key_id: str | None = field(default=None, repr=False)
    secret_access_key: str | None = field(default=None, repr=False)
    sts_role_arn: str | None = None
    sts_session_name: str | None = None
    sts_region: str | None = None

    def __post_init__(self):
        if not self.bucket_name or not self.bucket_name.strip():
            raise ValueError("ObjectStoreConfig.bucket_name must be a non-empty string.")
        has_access = bool(self.access_key_id and self.access_key_id.strip())
        has_secret = bool(self.secret_access_key and self.secret_access_key.strip())
        if has_access != has_secret:
            raise ValueError(
                "ObjectStoreConfig requires all-or-nothing credentials: "
                "set both access_key_id and secret_access_key, or neither (for the default provider chain)."
            )

    def to_client_options(self) -> S3ClientOptions:
        return S3ClientOptions(
            endpoint_uri=self.endpoint,
            region=self.region,
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            sts_role_arn=self.sts_role_arn,
            sts_session_name=self.sts_session_name,
            sts_region=self.sts_region,
        )


def _optional_env(environ: Mapping[str, str], name: str) -> str | None:
    return environ.get(ENV_PREFIX + name) or None


def require_env(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(ENV_PREFIX + name)
    if not value:
        raise ValueError(f"Environment variable '{ENV_PREFIX + name}' is required but not set.")
    return value


def get_object_store_config(environ: Mapping[str, str] | None = None) -> ObjectStoreConfig:
    env = os.environ if environ is None else environ
    return ObjectStoreConfig(
        bucket_name=require_env(env, "BUCKET_NAME"),
        endpoint=_optional_env(env, "ENDPOINT"),
        region=_optional_env(env, "REGION"),
        access_key_id=_optional_env(env, "ACCESS_KEY_ID"),
        secret_access_key=_optional_env(env, "SECRET_ACCESS_KEY"),
        sts_role_arn=_optional_env(env, "STS_ROLE_ARN"),
        sts_session_name=_optional_env(env, "STS_SESSION_NAME"),
        sts_region=_optional_env(env, "STS_REGION"),
    )
