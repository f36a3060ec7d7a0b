from __future__ import annotations
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from functools import lru_cache
import boto3
import botocore.session
from botocore.client import BaseClient, Config
from botocore.credentials import CredentialProvider, CredentialResolver, Credentials
from s3source.credentials.assume_role import assume_role
from s3source.credentials.credential_chain import new_credential_chain
from s3source.logging_config import get_logger
from s3source.region.region_chain import default_region_sources, parse_region, resolve_region

logger = get_logger(__name__)


class _InstalledCredentialProvider(CredentialProvider):
    METHOD = "s3source"

    def __init__(self, credentials: Credentials):
        super().__init__()
        self._credentials = credentials

    def load(self) -> Credentials:
        return self._credentials


def _session_for(credentials: Credentials) -> boto3.Session:
    # The resolver only hands back the lazy credentials object; no lookup happens here.
    core = botocore.session.get_session()
    core.register_component("credential_provider", CredentialResolver(providers=[_InstalledCredentialProvider(credentials)]))
    return boto3.Session(botocore_session=core)


@dataclass(frozen=True)
class ClientConfiguration:
    region: str
    credentials: Credentials = field(repr=False)
    endpoint_uri: str | None = None
    checksum_validation: bool = False

    def __post_init__(self):
        if not self.region:
            raise ValueError("ClientConfiguration.region is required, even for non-AWS endpoints.")

    @property
    def path_style_access(self) -> bool:
        return self.endpoint_uri is not None

    @property
    def addressing_style(self) -> str:
        return "path" if self.path_style_access else "virtual"

    def client_config(self) -> Config:
        checksum_mode = "when_supported" if self.checksum_validation else "when_required"
        return Config(
            signature_version="s3v4",
            s3={"addressing_style": self.addressing_style},
            request_checksum_calculation=checksum_mode,
            response_checksum_validation=checksum_mode,
        )

    def create_client(self) -> BaseClient:
        client_kwargs = {
            "config": self.client_config(),
            "region_name": self.region,
        }
        if self.endpoint_uri:
            client_kwargs["endpoint_url"] = self.endpoint_uri
        return _session_for(self.credentials).client("s3", **client_kwargs)


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True)
class S3ClientOptions:
    """
    Immutable inputs for one S3 client.

    Every ``with_*`` method returns a new instance, so a client built from one
    set of options never changes when another set is derived from it. Region
    values that do not look like a region are dropped rather than rejected.
    A custom region name such as ``garage`` is kept, but only an AWS-style
    name survives resolve() when no endpoint is set.
    """

    endpoint_uri: str | None = None
    region: str | None = None
    access_key_id: str | None = field(default=None, repr=False)
    secret_access_key: str | None = field(default=None, repr=False)
    sts_role_arn: str | None = None
    sts_session_name: str | None = None
    sts_region: str | None = None

    def __post_init__(self):
        for name in ("endpoint_uri", "access_key_id", "secret_access_key", "sts_role_arn", "sts_session_name"):
            object.__setattr__(self, name, _blank_to_none(getattr(self, name)))
        # Checked against the endpoint in resolve().
        object.__setattr__(self, "region", parse_region(self.region, custom_endpoint=True))
        object.__setattr__(self, "sts_region", parse_region(self.sts_region))

    def with_endpoint_uri(self, uri: str | None) -> S3ClientOptions:
        return replace(self, endpoint_uri=uri)

    def with_region(self, region: str | None) -> S3ClientOptions:
        return replace(self, region=region)

    def with_access_key_id(self, access_key_id: str | None) -> S3ClientOptions:
        return replace(self, access_key_id=access_key_id)

    def with_secret_access_key(self, secret_access_key: str | None) -> S3ClientOptions:
        return replace(self, secret_access_key=secret_access_key)

    def with_sts_role_arn(self, role_arn: str | None) -> S3ClientOptions:
        return replace(self, sts_role_arn=role_arn)

    def with_sts_session_name(self, session_name: str | None) -> S3ClientOptions:
        return replace(self, sts_session_name=session_name)

    def with_sts_region(self, sts_region: str | None) -> S3ClientOptions:
        return replace(self, sts_region=sts_region)

    def resolve(self, environ: Mapping[str, str] | None = None) -> ClientConfiguration:
        region = resolve_region(
            self.region,
            default_region_sources(self.region, properties=environ, environ=environ),
            custom_endpoint=self.endpoint_uri is not None,
        )
        credentials = new_credential_chain(self.access_key_id, self.secret_access_key, properties=environ, environ=environ)
        if self.sts_role_arn:
            # A custom store region never names an STS endpoint.
            sts_region = self.sts_region or parse_region(region)
            credentials = assume_role(credentials, self.sts_role_arn, self.sts_session_name, sts_region)
        configuration = ClientConfiguration(region=region, credentials=credentials, endpoint_uri=self.endpoint_uri)
        logger.info(
            "Resolved S3 client configuration: region=%s endpoint=%s addressing_style=%s credentials=%s",
            configuration.region,
            configuration.endpoint_uri,
            configuration.addressing_style,
            credentials.method,
        )
        return configuration

    def build(self, environ: Mapping[str, str] | None = None) -> BaseClient:
        return self.resolve(environ).create_client()


CLIENT_CACHE_SIZE = 32


@lru_cache(maxsize=CLIENT_CACHE_SIZE)
def get_client(options: S3ClientOptions) -> BaseClient:
    """Return the shared client for ``options``, building it on first request."""
    return options.build()
