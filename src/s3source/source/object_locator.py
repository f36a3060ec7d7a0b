from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from s3source.client.s3_client_builder import S3ClientOptions

UNKNOWN_LENGTH = -1
REDACTED = "******"


def _secret_value(secret: Optional[SecretStr]) -> Optional[str]:
    return secret.get_secret_value() if secret is not None else None


# Everything needed to reach one object. Fields may be filled in stages, each assignment is validated.
class ObjectLocator(BaseModel):
    model_config = ConfigDict(extra='forbid', validate_assignment=True)

    region: Optional[str] = Field(None, description="Endpoint region. Only meaningful for AWS endpoints.")
    endpoint: Optional[str] = Field(None, description="Service endpoint URI, None for the default AWS endpoint.")
    access_key_id: Optional[SecretStr] = Field(None, description="Static access key ID.")
    secret_access_key: Optional[SecretStr] = Field(None, description="Static secret access key.")
    sts_role_arn: Optional[str] = Field(None, description="Role to assume before accessing the object.")
    sts_session_name: Optional[str] = Field(None, description="Session name for the assumed role.")
    sts_region: Optional[str] = Field(None, description="Region of the STS endpoint.")
    bucket_name: Optional[str] = Field(None, description="Bucket holding the object.")
    key: Optional[str] = Field(None, description="Object key within the bucket.")
    length: int = Field(UNKNOWN_LENGTH, ge=UNKNOWN_LENGTH, description="Object size in bytes, -1 when it still has to be queried.")

    @property
    def length_known(self) -> bool:
        return self.length >= 0

    def require_target(self) -> None:
        if not self.bucket_name or not self.bucket_name.strip():
            raise ValueError("ObjectLocator.bucket_name must be a non-empty string.")
        if not self.key or not self.key.strip():
            raise ValueError("ObjectLocator.key must be a non-empty string.")

    def to_client_options(self) -> S3ClientOptions:
        return S3ClientOptions(
            endpoint_uri=self.endpoint,
            region=self.region,
            access_key_id=_secret_value(self.access_key_id),
            secret_access_key=_secret_value(self.secret_access_key),
            sts_role_arn=self.sts_role_arn,
            sts_session_name=self.sts_session_name,
            sts_region=self.sts_region,
        )

    def __str__(self) -> str:
        access_key_id = REDACTED if self.access_key_id is not None else None
        secret_access_key = REDACTED if self.secret_access_key is not None else None
        return (
            f"[endpoint: {self.endpoint}] "
            f"[region: {self.region}] "
            f"[access_key_id: {access_key_id}] "
            f"[secret_access_key: {secret_access_key}] "
            f"[sts_role_arn: {self.sts_role_arn}] "
            f"[sts_session_name: {self.sts_session_name}] "
            f"[sts_region: {self.sts_region}] "
            f"[bucket: {self.bucket_name}] "
            f"[key: {self.key}] "
            f"[length: {self.length}]"
        )

    def __repr__(self) -> str:
        return f"ObjectLocator({self})"
