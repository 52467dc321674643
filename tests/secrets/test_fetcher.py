"""Tests for SecretFetcher and value mapping."""

import pytest

from conftest import InMemorySecretStore, kv2_metadata, kv2_response, make_request
from vault_to_envs.exceptions import ConfigValidationError, FetchError
from vault_to_envs.secrets.base import ResolvedSecret, ResolvedValue
from vault_to_envs.secrets.fetcher import SecretFetcher, map_values
from vault_to_envs.secrets.mounts import MountInfo

KV2 = MountInfo(path="secret/", type="kv", options={"version": "2"})
GENERIC = MountInfo(path="generic/", type="generic")
AWS = MountInfo(path="aws/", type="aws")


@pytest.fixture
def store():
    return InMemorySecretStore()


@pytest.fixture
def fetcher(store):
    return SecretFetcher(store)


class TestVersionedFetch:
    """Test fetching from versioned key-value mounts."""

    def test_reads_data_path_at_latest(self, store, fetcher):
        store.add(
            "secret/data/app/db",
            kv2_response({"dbHost": "db.local", "dbPass": "p4ss"}, version=3),
            version=0,
        )
        request = make_request(
            vault_path="secret/app/db", set={"DB_HOST": "dbHost", "DB_PASS": "dbPass"}
        )

        secret = fetcher.fetch(request, KV2)

        assert secret.data == {"dbHost": "db.local", "dbPass": "p4ss"}
        assert secret.effective_version == 0
        assert ("read", ("secret/data/app/db", 0)) in store.calls

    def test_negative_selector_reads_resolved_version(self, store, fetcher):
        store.add(
            "secret/metadata/app/db",
            kv2_metadata({1: {}, 2: {}, 3: {"destroyed": True}}),
        )
        store.add(
            "secret/data/app/db", kv2_response({"dbHost": "old"}, version=2), version=2
        )
        request = make_request(
            vault_path="secret/app/db", version=-1, set={"DB_HOST": "dbHost"}
        )

        secret = fetcher.fetch(request, KV2)

        assert secret.effective_version == 2
        assert secret.data["dbHost"] == "old"

    def test_missing_secret(self, fetcher):
        request = make_request(
            vault_path="secret/app/db", version=4, set={"DB_HOST": "dbHost"}
        )

        with pytest.raises(FetchError, match="Could not find secret secret/app/db"):
            fetcher.fetch(request, KV2)

    def test_response_without_nested_data(self, store, fetcher):
        store.add("secret/data/app/db", {"data": {"metadata": {}}}, version=0)
        request = make_request(vault_path="secret/app/db", set={"DB_HOST": "dbHost"})

        with pytest.raises(FetchError, match="No data found"):
            fetcher.fetch(request, KV2)

    def test_non_object_payload(self, store, fetcher):
        store.add("secret/data/app/db", {"data": "corrupt"}, version=0)
        request = make_request(vault_path="secret/app/db", set={"DB_HOST": "dbHost"})

        with pytest.raises(FetchError, match="No data found"):
            fetcher.fetch(request, KV2)

    def test_missing_key(self, store, fetcher):
        store.add("secret/data/app/db", kv2_response({"dbHost": "x"}), version=0)
        request = make_request(
            vault_path="secret/app/db", set={"DB_HOST": "dbHost", "DB_PASS": "dbPass"}
        )

        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(request, KV2)

        assert str(exc_info.value) == "Key dbPass not found in secret secret/app/db"
        assert exc_info.value.details["key"] == "dbPass"

    def test_null_value_counts_as_missing(self, store, fetcher):
        store.add("secret/data/app/db", kv2_response({"dbHost": None}), version=0)
        request = make_request(vault_path="secret/app/db", set={"DB_HOST": "dbHost"})

        with pytest.raises(FetchError, match="Key dbHost not found"):
            fetcher.fetch(request, KV2)


class TestGenericFetch:
    """Test fetching from non-versioned mounts."""

    def test_reads_path_as_is(self, store, fetcher):
        store.add(
            "generic/app",
            {
                "data": {"token": "abc"},
                "lease_id": "",
                "lease_duration": 2764800,
                "renewable": False,
            },
        )
        request = make_request(vault_path="generic/app", set={"TOKEN": "token"})

        secret = fetcher.fetch(request, GENERIC)

        assert secret.data == {"token": "abc"}
        assert secret.lease_duration == 2764800
        assert secret.effective_version is None
        assert store.calls == [("read", ("generic/app", None))]

    def test_aws_credentials_carry_lease(self, store, fetcher):
        store.add(
            "aws/creds/deploy",
            {
                "data": {"access_key": "AKIA", "secret_key": "s3cr3t"},
                "lease_id": "aws/creds/deploy/abc",
                "lease_duration": 3600,
                "renewable": True,
            },
        )
        request = make_request(
            vault_path="aws/creds/deploy",
            set={"AWS_ACCESS_KEY_ID": "access_key", "AWS_SECRET_ACCESS_KEY": "secret_key"},
        )

        secret = fetcher.fetch(request, AWS)

        assert secret.lease_id == "aws/creds/deploy/abc"
        assert secret.renewable is True

    def test_version_on_generic_mount_is_rejected(self, store, fetcher):
        request = make_request(vault_path="generic/app", version=2, set={"T": "token"})

        with pytest.raises(ConfigValidationError, match="non-versioned secret"):
            fetcher.fetch(request, GENERIC)

        assert store.calls == []

    def test_missing_secret(self, fetcher):
        request = make_request(vault_path="generic/app", set={"T": "token"})

        with pytest.raises(FetchError, match="Could not find secret generic/app"):
            fetcher.fetch(request, GENERIC)

    def test_non_object_data(self, store, fetcher):
        store.add("generic/app", {"data": None, "lease_duration": 0})
        request = make_request(vault_path="generic/app", set={"T": "token"})

        with pytest.raises(FetchError, match="No data found in secret generic/app"):
            fetcher.fetch(request, GENERIC)


def test_map_values_follows_mapping_order():
    request = make_request(
        vault_path="secret/app", set={"ZED": "z", "ALPHA": "a", "COUNT": "n"}
    )
    secret = ResolvedSecret(path="secret/app", data={"a": "1", "z": "2", "n": 3})

    assert map_values(request, secret) == [
        ResolvedValue(name="ZED", value="2"),
        ResolvedValue(name="ALPHA", value="1"),
        ResolvedValue(name="COUNT", value="3"),
    ]
