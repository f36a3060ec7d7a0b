from __future__ import annotations
import os
import re
from collections.abc import Callable, Iterable, Mapping
from botocore.configloader import load_config
from botocore.exceptions import BotoCoreError, ConfigNotFound
from botocore.utils import InstanceMetadataRegionFetcher
from s3source.logging_config import get_logger

logger = get_logger(__name__)

# Used when no region source can produce a region. Non-AWS endpoints still need one.
DEFAULT_REGION = "us-east-1"

REGION_PROPERTY = "aws.region"
REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")

_REGION_PATTERN = re.compile(r"^[a-z]{2,4}(-[a-z]+)+-\d{1,2}$")
# S3-compatible stores sign with whatever name they were set up with, e.g. "garage".
_CUSTOM_REGION_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")

RegionSource = Callable[[], str | None]


def parse_region(value: str | None, custom_endpoint: bool = False) -> str | None:
    """
    Normalise a region name, returning None when it is blank or malformed.

    AWS endpoints only accept AWS-style names such as ``us-east-1``. With a
    custom endpoint any lowercase token of letters, digits and dashes is kept.
    """
    if value is None:
        return None
    candidate = value.strip().lower()
    pattern = _CUSTOM_REGION_PATTERN if custom_endpoint else _REGION_PATTERN
    if not candidate or not pattern.match(candidate):
        return None
    return candidate


def system_settings_region(properties: Mapping[str, str] | None = None, environ: Mapping[str, str] | None = None) -> RegionSource:
    props = os.environ if properties is None else properties
    env = os.environ if environ is None else environ

    def _resolve() -> str | None:
        value = props.get(REGION_PROPERTY)
        if value:
            return value
        for name in REGION_ENV_VARS:
            value = env.get(name)
            if value:
                return value
        return None
    return _resolve


def configured_region(region: str | None) -> RegionSource:
    return lambda: region


def profile_region(environ: Mapping[str, str] | None = None) -> RegionSource:
    env = os.environ if environ is None else environ

    def _resolve() -> str | None:
        config_file = env.get("AWS_CONFIG_FILE", "~/.aws/config")
        profile = env.get("AWS_PROFILE") or "default"
        try:
            profiles = load_config(config_file).get("profiles", {})
        except ConfigNotFound:
            return None
        return profiles.get(profile, {}).get("region")
    return _resolve


def instance_metadata_region(environ: Mapping[str, str] | None = None, timeout: float = 1, num_attempts: int = 1) -> RegionSource:
    def _resolve() -> str | None:
        env = dict(os.environ if environ is None else environ)
        fetcher = InstanceMetadataRegionFetcher(timeout=timeout, num_attempts=num_attempts, env=env)
        return fetcher.retrieve_region()
    return _resolve


def default_region_sources(configured: str | None, properties: Mapping[str, str] | None = None, environ: Mapping[str, str] | None = None) -> list[RegionSource]:
    return [
        system_settings_region(properties, environ),
        configured_region(configured),
        profile_region(environ),
        instance_metadata_region(environ),
    ]


def resolve_region(configured: str | None, sources: Iterable[RegionSource] | None = None, custom_endpoint: bool = False) -> str:
    """
    Walk the region sources in order and return the first usable region.

    The order is properties/environment, the configured value, the shared
    profile and finally instance metadata. Malformed values from any source
    count as absent; ``custom_endpoint`` relaxes what counts as malformed
    (see parse_region). When every source comes up empty, DEFAULT_REGION is
    returned; resolution failures are never raised to the caller.
    """
    if sources is None:
        sources = default_region_sources(configured)
    for index, source in enumerate(sources):
        try:
            raw = source()
        except BotoCoreError:
            logger.debug("Region source failed: index=%s", index, exc_info=True)
            continue
        region = parse_region(raw, custom_endpoint)
        if region:
            logger.debug("Resolved region: region=%s index=%s", region, index)
            return region
        if raw:
            logger.debug("Ignoring malformed region: value=%r index=%s", raw, index)
    logger.debug("No region source succeeded, using default: region=%s", DEFAULT_REGION)
    return DEFAULT_REGION
