"""Tests for S3 client options, resolution and client construction."""

import pytest
from botocore.credentials import DeferredRefreshableCredentials

import s3source.credentials.assume_role as assume_role_module
from s3source.client.s3_client_builder import CLIENT_CACHE_SIZE, ClientConfiguration, S3ClientOptions, get_client
from s3source.credentials.credential_chain import CredentialChain

ROLE_ARN = "arn:aws:iam::123:role/test"


@pytest.fixture
def sts_regions(monkeypatch) -> list:
    regions = []

    def fake_creator(sts_region):
        regions.append(sts_region)
        return lambda *args, **kwargs: None

    monkeypatch.setattr(assume_role_module, "sts_client_creator", fake_creator)
    return regions


class TestS3ClientOptions:
    def test_with_methods_return_new_instances(self):
        base = S3ClientOptions()
        derived = base.with_endpoint_uri("http://localhost:9000").with_region("eu-west-1")

        assert base.endpoint_uri is None
        assert base.region is None
        assert derived.endpoint_uri == "http://localhost:9000"
        assert derived.region == "eu-west-1"

    def test_invalid_region_is_swallowed(self):
        assert S3ClientOptions().with_region("not a region").region is None
        assert S3ClientOptions().with_region("us_east_1").region is None
        assert S3ClientOptions(sts_region="not a region").sts_region is None
        assert S3ClientOptions(sts_region="garage").sts_region is None

    def test_blank_values_are_unset(self):
        options = S3ClientOptions(endpoint_uri=" ", access_key_id="", sts_role_arn="  ")

        assert options.endpoint_uri is None
        assert options.access_key_id is None
        assert options.sts_role_arn is None

    def test_repr_hides_secrets(self):
        options = S3ClientOptions().with_access_key_id("AKIDVALUE").with_secret_access_key("very-secret")

        assert "AKIDVALUE" not in repr(options)
        assert "very-secret" not in repr(options)

    def test_equal_options_hash_equal(self):
        assert hash(S3ClientOptions(region="us-west-2")) == hash(S3ClientOptions().with_region("us-west-2"))


class TestResolve:
    def test_invalid_region_and_no_other_source_uses_default(self):
        configuration = S3ClientOptions().with_region("invalid-region-xyz").resolve()
        assert configuration.region == "us-east-1"

    def test_custom_region_kept_for_custom_endpoint(self):
        configuration = S3ClientOptions(endpoint_uri="http://localhost:3900", region="garage").resolve()
        assert configuration.region == "garage"

    def test_custom_region_does_not_depend_on_setter_order(self):
        options = S3ClientOptions().with_region("garage").with_endpoint_uri("http://localhost:3900")
        assert options.resolve().region == "garage"

    def test_custom_region_dropped_without_endpoint(self):
        assert S3ClientOptions(region="garage").resolve().region == "us-east-1"

    def test_environment_region_wins_over_configured(self, monkeypatch):
        monkeypatch.setenv("AWS_REGION", "eu-west-3")
        assert S3ClientOptions(region="us-west-2").resolve().region == "eu-west-3"

    def test_endpoint_enables_path_style(self):
        configuration = S3ClientOptions().with_endpoint_uri("http://localhost:9000").resolve()

        assert configuration.path_style_access is True
        assert configuration.addressing_style == "path"

    def test_no_endpoint_never_enables_path_style(self):
        configuration = S3ClientOptions(region="us-west-2").resolve()

        assert configuration.path_style_access is False
        assert configuration.addressing_style == "virtual"

    def test_checksum_validation_disabled(self):
        configuration = S3ClientOptions().resolve()

        assert configuration.checksum_validation is False
        config = configuration.client_config()
        assert config.request_checksum_calculation == "when_required"
        assert config.response_checksum_validation == "when_required"

    def test_without_role_uses_base_chain(self):
        configuration = S3ClientOptions(access_key_id="AKID", secret_access_key="secret").resolve()

        assert isinstance(configuration.credentials, CredentialChain)
        assert configuration.credentials.method == "chain"

    def test_with_role_uses_assumed_credentials(self, sts_regions):
        configuration = S3ClientOptions(region="eu-west-1").with_sts_role_arn(ROLE_ARN).resolve()

        assert isinstance(configuration.credentials, DeferredRefreshableCredentials)
        assert configuration.credentials.method == "assume-role"
        assert sts_regions == ["eu-west-1"]

    def test_sts_region_overrides_client_region(self, sts_regions):
        S3ClientOptions(region="eu-west-1", sts_role_arn=ROLE_ARN, sts_region="us-west-2").resolve()
        assert sts_regions == ["us-west-2"]

    def test_custom_region_is_not_used_for_sts(self, sts_regions):
        S3ClientOptions(endpoint_uri="http://localhost:3900", region="garage", sts_role_arn=ROLE_ARN).resolve()
        assert sts_regions == ["us-east-1"]

    def test_resolved_configuration_is_a_snapshot(self):
        options = S3ClientOptions(region="us-west-2")
        configuration = options.resolve()
        options.with_endpoint_uri("http://localhost:9000").with_region("eu-west-1")

        assert configuration.endpoint_uri is None
        assert configuration.region == "us-west-2"

    def test_region_is_required(self):
        with pytest.raises(ValueError):
            ClientConfiguration(region="", credentials=None)


class TestBuild:
    def test_local_endpoint_without_region(self):
        client = S3ClientOptions().with_endpoint_uri("http://localhost:9000").build()

        assert client.meta.region_name == "us-east-1"
        assert client.meta.endpoint_url == "http://localhost:9000"
        assert client.meta.config.s3["addressing_style"] == "path"

    def test_custom_endpoint_signs_with_custom_region(self):
        client = S3ClientOptions(
            endpoint_uri="http://localhost:9000",
            region="garage",
            access_key_id="AKID",
            secret_access_key="secret",
        ).build()

        assert client.meta.region_name == "garage"

    def test_aws_endpoint_uses_virtual_addressing(self):
        client = S3ClientOptions(region="eu-central-1").build()

        assert client.meta.region_name == "eu-central-1"
        assert client.meta.config.s3["addressing_style"] == "virtual"
        assert "localhost" not in client.meta.endpoint_url

    def test_client_carries_disabled_checksums(self):
        client = S3ClientOptions().build()

        assert client.meta.config.request_checksum_calculation == "when_required"
        assert client.meta.config.response_checksum_validation == "when_required"

    def test_client_uses_resolved_credentials(self):
        configuration = S3ClientOptions(access_key_id="AKID", secret_access_key="secret").resolve()
        client = configuration.create_client()

        assert client._get_credentials() is configuration.credentials
        assert client._get_credentials().get_frozen_credentials().access_key == "AKID"

    def test_build_with_role_does_not_contact_sts(self, sts_regions):
        client = S3ClientOptions(sts_role_arn=ROLE_ARN).build()

        assert client._get_credentials().method == "assume-role"
        assert sts_regions == ["us-east-1"]


class TestGetClient:
    def test_same_options_share_a_client(self):
        options = S3ClientOptions(region="us-west-2")
        assert get_client(options) is get_client(S3ClientOptions().with_region("us-west-2"))

    def test_cache_is_bounded(self):
        for index in range(CLIENT_CACHE_SIZE + 1):
            get_client(S3ClientOptions(endpoint_uri=f"http://localhost:{9000 + index}"))

        assert get_client.cache_info().currsize == CLIENT_CACHE_SIZE

    def test_different_options_get_different_clients(self):
        assert get_client(S3ClientOptions(region="us-west-2")) is not get_client(S3ClientOptions(region="us-west-1"))
