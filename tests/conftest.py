"""Pytest configuration and shared fixtures."""

import logging
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from vault_to_envs.config import SecretRequest
from vault_to_envs.logging import LOGGER_NAME
from vault_to_envs.secrets.base import SecretStore


class InMemorySecretStore(SecretStore):
    """Secret store double that records every call."""

    def __init__(self, mounts: Optional[Dict[str, Dict[str, Any]]] = None):
        self.mounts = mounts or {
            "secret/": {"type": "kv", "options": {"version": "2"}},
            "generic/": {"type": "generic"},
            "aws/": {"type": "aws"},
        }
        self.responses: Dict[Tuple[str, Optional[int]], Dict[str, Any]] = {}
        self.renewals: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Any]] = []

    def add(self, path: str, response: Dict[str, Any], version: Optional[int] = None):
        self.responses[(path, version)] = response

    def list_mounts(self) -> Dict[str, Dict[str, Any]]:
        self.calls.append(("list_mounts", None))
        return self.mounts

    def read(self, path: str, version: Optional[int] = None):
        self.calls.append(("read", (path, version)))
        return self.responses.get((path, version))

    def read_metadata(self, path: str):
        self.calls.append(("read_metadata", path))
        return self.responses.get((path, None))

    def renew_lease(self, lease_id: str, increment: int) -> Dict[str, Any]:
        self.calls.append(("renew_lease", (lease_id, increment)))
        return self.renewals[lease_id]


def kv2_response(data: Dict[str, Any], version: int = 1) -> Dict[str, Any]:
    return {
        "data": {"data": data, "metadata": {"version": version}},
        "lease_id": "",
        "lease_duration": 0,
        "renewable": False,
    }


def kv2_metadata(versions: Dict[int, Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "data": {
            "versions": {
                str(number): {
                    "deletion_time": entry.get("deletion_time", ""),
                    "destroyed": entry.get("destroyed", False),
                }
                for number, entry in versions.items()
            }
        }
    }


def client_error(code: str, operation: str = "GetCallerIdentity") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def make_request(**fields: Any) -> SecretRequest:
    return SecretRequest.model_validate(fields)


@pytest.fixture
def memory_store():
    return InMemorySecretStore()


@pytest.fixture
def sleeps():
    """Record requested sleeps instead of waiting."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def vault_client():
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging so caplog sees records from every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
