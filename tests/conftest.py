"""Shared fixtures keeping every test away from real AWS configuration and endpoints."""

import os
from pathlib import Path
from typing import Generator

import pytest

from s3source.client.s3_client_builder import get_client

_AWS_VARS_PREFIXES = ("AWS_", "S3SOURCE_", "aws.")


@pytest.fixture(autouse=True)
def isolated_aws_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Path, None, None]:
    """Strip AWS settings from the environment and point profile files at an empty directory.

    Instance metadata lookups are disabled so no test ever waits on the network.

    Yields:
        Directory where tests may write their own profile files
    """
    for name in list(os.environ):
        if name.startswith(_AWS_VARS_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    get_client.cache_clear()
    yield tmp_path
    get_client.cache_clear()
