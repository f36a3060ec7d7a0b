from __future__ import annotations
import os
import threading
from collections.abc import Iterable, Mapping
import botocore.session
from botocore.credentials import (
    AssumeRoleProvider,
    CanonicalNameCredentialSourcer,
    ContainerProvider,
    CredentialProvider,
    Credentials,
    EnvProvider,
    InstanceMetadataProvider,
    ProfileProviderBuilder,
    ReadOnlyCredentials,
)
from botocore.exceptions import BotoCoreError, NoCredentialsError
from botocore.utils import InstanceMetadataFetcher
from s3source.logging_config import get_logger
from s3source.region.region_chain import DEFAULT_REGION, parse_region

logger = get_logger(__name__)

PROPERTY_MAPPING = {
    "access_key": "aws.accessKeyId",
    "secret_key": "aws.secretAccessKey",
    "token": "aws.sessionToken",
    "expiry_time": "aws.credentialExpiration",
    "account_id": "aws.accountId",
}


class SystemPropertiesProvider(EnvProvider):
    """Credentials from process-level override properties such as ``aws.accessKeyId``."""

    METHOD = "system-properties"
    CANONICAL_NAME = "SystemProperties"

    def __init__(self, properties: Mapping[str, str] | None = None):
        super().__init__(environ=properties, mapping=PROPERTY_MAPPING)


class StaticCredentialProvider(CredentialProvider):
    METHOD = "config"
    CANONICAL_NAME = "ApplicationConfig"

    def __init__(self, access_key_id: str, secret_access_key: str):
        super().__init__()
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key

    def load(self) -> Credentials:
        return Credentials(self._access_key_id, self._secret_access_key, method=self.METHOD)


def _is_set(value: str | None) -> bool:
    return bool(value and value.strip())


def new_credential_providers(
    access_key_id: str | None,
    secret_access_key: str | None,
    *,
    properties: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
    metadata_timeout: float = 1,
    metadata_attempts: int = 1,
) -> list[CredentialProvider]:
    """
    Build the ordered provider list: properties, environment, application
    config, named profile, container, instance metadata.

    The application config pair sits between the environment and the profile
    so environment variables still override it while it still beats a local
    profile file. It is only included when both values are non-blank.

    The named-profile step covers everything a profile can describe:
    ``role_arn`` with ``source_profile`` or ``credential_source``, web
    identity, SSO, static keys in the credentials file, ``credential_process``
    and static keys in the config file, in that order.
    """
    env = os.environ if environ is None else environ
    profile = env.get("AWS_PROFILE") or "default"
    session = _profile_session(env, profile)
    profile_builder = ProfileProviderBuilder(session, cache={})
    env_provider = EnvProvider(environ=env)
    container_provider = ContainerProvider(environ=env)
    metadata_provider = InstanceMetadataProvider(
        iam_role_fetcher=InstanceMetadataFetcher(
            timeout=metadata_timeout,
            num_attempts=metadata_attempts,
            env=dict(env),
        )
    )

    providers: list[CredentialProvider] = [
        SystemPropertiesProvider(properties),
        env_provider,
    ]
    if _is_set(access_key_id) and _is_set(secret_access_key):
        providers.append(StaticCredentialProvider(access_key_id, secret_access_key))
    providers.append(
        AssumeRoleProvider(
            load_config=lambda: session.full_config,
            client_creator=_sts_client_creator(session),
            cache={},
            profile_name=profile,
            credential_sourcer=CanonicalNameCredentialSourcer([env_provider, container_provider, metadata_provider]),
            profile_provider_builder=profile_builder,
        )
    )
    providers.extend(profile_builder.providers(profile_name=profile))
    providers.extend([container_provider, metadata_provider])
    return providers


def _profile_session(env: Mapping[str, str], profile: str) -> botocore.session.Session:
    # Profile files are read on first load, never here.
    session = botocore.session.get_session()
    session.set_config_variable("config_file", env.get("AWS_CONFIG_FILE", "~/.aws/config"))
    session.set_config_variable("credentials_file", env.get("AWS_SHARED_CREDENTIALS_FILE", "~/.aws/credentials"))
    session.set_config_variable("profile", profile)
    return session


def _sts_client_creator(session: botocore.session.Session):
    def create(service_name: str, **kwargs):
        region = parse_region(session.get_config_variable("region")) or DEFAULT_REGION
        return session.create_client(service_name, region_name=region, **kwargs)
    return create


class CredentialChain(Credentials):
    """
    Credentials that pick their source lazily from an ordered provider list.

    Nothing is looked up until the credentials are first used, typically when
    a request is signed. The first provider that returns credentials wins and
    is kept; credentials it refreshes natively keep refreshing. If every
    provider comes up empty, NoCredentialsError is raised and the next use
    tries the whole chain again.
    """

    def __init__(self, providers: Iterable[CredentialProvider]):
        self.providers = list(providers)
        self.method = "chain"
        self._resolved: Credentials | None = None
        self._lock = threading.Lock()

    def _load(self) -> Credentials:
        with self._lock:
            if self._resolved is None:
                self._resolved = self._resolve()
            return self._resolved

    def _resolve(self) -> Credentials:
        for provider in self.providers:
            try:
                credentials = provider.load()
            except BotoCoreError:
                logger.debug("Credential provider failed: method=%s", provider.METHOD, exc_info=True)
                continue
            if credentials is not None:
                logger.info("Found credentials: method=%s", provider.METHOD)
                return credentials
        logger.warning("No credential provider succeeded: providers=%s", [p.METHOD for p in self.providers])
        raise NoCredentialsError()

    @property
    def source_method(self) -> str | None:
        return self._resolved.method if self._resolved is not None else None

    @property
    def access_key(self) -> str:
        return self._load().access_key

    @property
    def secret_key(self) -> str:
        return self._load().secret_key

    @property
    def token(self) -> str | None:
        return self._load().token

    @property
    def account_id(self) -> str | None:
        return getattr(self._load(), "account_id", None)

    def get_frozen_credentials(self) -> ReadOnlyCredentials:
        return self._load().get_frozen_credentials()


def new_credential_chain(access_key_id: str | None, secret_access_key: str | None, **kwargs) -> CredentialChain:
    return CredentialChain(new_credential_providers(access_key_id, secret_access_key, **kwargs))
