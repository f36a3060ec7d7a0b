from __future__ import annotations
from collections.abc import Callable
from functools import partial
from typing import Any
import botocore.session
from botocore.client import BaseClient
from botocore.config import Config
from botocore.credentials import AssumeRoleCredentialFetcher, Credentials, DeferredRefreshableCredentials
from s3source.logging_config import get_logger
from s3source.region.region_chain import DEFAULT_REGION

logger = get_logger(__name__)

# Session name sent with AssumeRole when none is configured.
DEFAULT_SESSION_NAME = "s3source"

# Credential acquisition is the only place this package asks for retries.
STS_CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})

ClientCreator = Callable[..., BaseClient]


def sts_client_creator(sts_region: str) -> ClientCreator:
    session = botocore.session.get_session()
    return partial(session.create_client, region_name=sts_region, config=STS_CLIENT_CONFIG)


def assume_role(
    base_credentials: Credentials,
    role_arn: str,
    session_name: str | None = None,
    sts_region: str | None = None,
    *,
    client_creator: ClientCreator | None = None,
) -> DeferredRefreshableCredentials:
    """
    Exchange ``base_credentials`` for temporary credentials of ``role_arn``.

    Nothing is sent to STS here. The first use of the returned credentials
    issues the AssumeRole call, and later uses re-issue it shortly before the
    temporary credentials expire. Refreshes are serialised by botocore's
    refresh lock, so concurrent callers never send duplicate requests. A
    rejected or unreachable STS surfaces as an error at that first use.
    """
    session_name = session_name or DEFAULT_SESSION_NAME
    sts_region = sts_region or DEFAULT_REGION
    if client_creator is None:
        client_creator = sts_client_creator(sts_region)
    fetcher = AssumeRoleCredentialFetcher(
        client_creator=client_creator,
        source_credentials=base_credentials,
        role_arn=role_arn,
        extra_args={"RoleSessionName": session_name},
    )

    def _refresh() -> dict[str, Any]:
        logger.info("Refreshing assumed role credentials: role_arn=%s session_name=%s sts_region=%s", role_arn, session_name, sts_region)
        try:
            return fetcher.fetch_credentials()
        except Exception:
            logger.exception("AssumeRole failed: role_arn=%s session_name=%s", role_arn, session_name)
            raise

    return DeferredRefreshableCredentials(refresh_using=_refresh, method="assume-role")
