"""Show how an S3 connection would be resolved, without contacting any endpoint."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping, Sequence
from typing import TextIO

from s3source.client.s3_client_builder import S3ClientOptions
from s3source.config.object_store_config import ENV_PREFIX
from s3source.logging_config import configure_logging, get_logger, with_context
from s3source.source.object_locator import ObjectLocator

logger = get_logger(__name__)


def parse_args(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> argparse.Namespace:
    env = os.environ if environ is None else environ

    def default(name: str) -> str | None:
        return env.get(ENV_PREFIX + name) or None

    parser = argparse.ArgumentParser(
        description="Resolve the region, credential source and addressing style of an S3 client."
    )
    parser.add_argument("--endpoint", default=default("ENDPOINT"), help="Custom S3-compatible endpoint URI.")
    parser.add_argument("--region", default=default("REGION"), help="Configured region.")
    parser.add_argument("--sts-role-arn", default=default("STS_ROLE_ARN"), help="Role to assume through STS.")
    parser.add_argument("--sts-session-name", default=default("STS_SESSION_NAME"), help="Session name for the assumed role.")
    parser.add_argument("--sts-region", default=default("STS_REGION"), help="Region of the STS endpoint.")
    parser.add_argument("--bucket", default=default("BUCKET_NAME"), help="Bucket to describe a locator for.")
    parser.add_argument("--key", default=None, help="Object key to describe a locator for.")
    return parser.parse_args(argv)


def describe(args: argparse.Namespace, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    env = dict(os.environ if environ is None else environ)
    env["AWS_EC2_METADATA_DISABLED"] = "true"
    # Static keys are read from the environment only.
    options = S3ClientOptions(
        endpoint_uri=args.endpoint,
        region=args.region,
        access_key_id=env.get(ENV_PREFIX + "ACCESS_KEY_ID"),
        secret_access_key=env.get(ENV_PREFIX + "SECRET_ACCESS_KEY"),
        sts_role_arn=args.sts_role_arn,
        sts_session_name=args.sts_session_name,
        sts_region=args.sts_region,
    )
    configuration = options.resolve(env)
    summary = {
        "region": configuration.region,
        "endpoint": configuration.endpoint_uri or "default",
        "addressing_style": configuration.addressing_style,
        "checksum_validation": str(configuration.checksum_validation).lower(),
        "credentials": configuration.credentials.method,
    }
    if args.bucket and args.key:
        locator = ObjectLocator(
            region=options.region,
            endpoint=options.endpoint_uri,
            access_key_id=options.access_key_id,
            secret_access_key=options.secret_access_key,
            sts_role_arn=options.sts_role_arn,
            sts_session_name=options.sts_session_name,
            sts_region=options.sts_region,
            bucket_name=args.bucket,
            key=args.key,
        )
        summary["locator"] = str(locator)
    return summary


def main(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    configure_logging(service="s3source.tools.describe_connection")
    args = parse_args(argv)
    log = with_context(logger, endpoint=args.endpoint, region=args.region)
    try:
        summary = describe(args)
    except Exception:
        log.exception("Failed to resolve S3 connection")
        raise
    stream = out or sys.stdout
    for key, value in summary.items():
        stream.write(f"{key}={value}\n")
    log.info("Described S3 connection: credentials=%s", summary["credentials"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
