"""Resolution pipeline: fetch every request, then activate cloud credentials.

The pipeline is two ordered transformations over an immutable sequence of
requests. The first pass classifies, fetches and lease-checks each request
in order; the second waits for credentials issued by the AWS engine to
become active. The first error aborts the run, so no output is produced
from a partially resolved configuration.
"""

import sys
from dataclasses import dataclass, replace
from typing import IO, Iterable, List, Optional, Sequence, Tuple

from .activation import CredentialActivationPoller, credential_keys
from .config import RunConfig, SecretRequest, load_secret_requests
from .exporter import format_env, format_exports
from .logging import get_logger
from .secrets.base import ResolvedSecret, ResolvedValue, SecretStore
from .secrets.fetcher import SecretFetcher, map_values
from .secrets.lease import LeaseManager
from .secrets.mounts import MountInfo, MountTable
from .secrets.vault import HashicorpVaultSecretStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedRequest:
    """A request together with its mount, fetched secret and output values."""

    request: SecretRequest
    mount: MountInfo
    secret: ResolvedSecret
    values: Tuple[ResolvedValue, ...]
    activated: bool = False

    def value_map(self) -> dict:
        return {value.name: value.value for value in self.values}


class ResolutionContext:
    """Shared collaborators for one resolution run.

    Holds the store client and the mount table, which is populated once
    when the context is built and only read afterwards.
    """

    def __init__(
        self,
        store: SecretStore,
        mounts: MountTable,
        poller: Optional[CredentialActivationPoller] = None,
    ):
        self.store = store
        self.mounts = mounts
        self.fetcher = SecretFetcher(store)
        self.lease_manager = LeaseManager(store)
        self._poller = poller

    @classmethod
    def build(
        cls,
        store: SecretStore,
        poller: Optional[CredentialActivationPoller] = None,
    ) -> "ResolutionContext":
        """Create a context, listing the store's mounts once."""
        mounts = MountTable.from_listing(store.list_mounts())
        logger.debug(
            f"Loaded {len(mounts)} secret engine mounts",
            extra={"event_type": "mounts_loaded"},
        )
        return cls(store, mounts, poller)

    @property
    def poller(self) -> CredentialActivationPoller:
        if self._poller is None:
            self._poller = CredentialActivationPoller()
        return self._poller


def resolve_request(
    context: ResolutionContext, request: SecretRequest
) -> ResolvedRequest:
    """Classify, fetch and lease-check one request."""
    mount = context.mounts.classify(request.path)
    if mount.issues_cloud_credentials:
        # Both credential roles must be mapped before the engine issues anything
        credential_keys(request)

    secret = context.fetcher.fetch(request, mount)
    secret = context.lease_manager.apply(request, secret)
    return ResolvedRequest(
        request=request,
        mount=mount,
        secret=secret,
        values=tuple(map_values(request, secret)),
    )


def fetch_all(
    context: ResolutionContext, requests: Sequence[SecretRequest]
) -> Tuple[ResolvedRequest, ...]:
    """First pass: resolve each request strictly in order."""
    return tuple(resolve_request(context, request) for request in requests)


def activate_all(
    context: ResolutionContext, resolved: Sequence[ResolvedRequest]
) -> Tuple[ResolvedRequest, ...]:
    """Second pass: wait for AWS-issued credentials to become active."""
    result: List[ResolvedRequest] = []
    for item in resolved:
        if item.mount.issues_cloud_credentials:
            context.poller.wait_for_activation(item.request, item.value_map())
            item = replace(item, activated=True)
        result.append(item)
    return tuple(result)


def collect_values(resolved: Iterable[ResolvedRequest]) -> List[ResolvedValue]:
    """Flatten resolved requests into output values, in request order.

    Names are not deduplicated; a repeated name shadows the earlier one once
    the output is evaluated, so it is reported as a warning.
    """
    values: List[ResolvedValue] = []
    seen = {}
    for item in resolved:
        for value in item.values:
            if value.name in seen:
                logger.warning(
                    f"Variable {value.name} from {item.request.path} shadows the "
                    f"value set by {seen[value.name]}",
                    extra={
                        "event_type": "duplicate_variable",
                        "vault_path": item.request.path,
                    },
                )
            seen[value.name] = item.request.path
            values.append(value)
    return values


def resolve_requests(
    context: ResolutionContext, requests: Sequence[SecretRequest]
) -> List[ResolvedValue]:
    """Run both passes and return every output value."""
    fetched = fetch_all(context, requests)
    activated = activate_all(context, fetched)
    return collect_values(activated)


class VaultToEnvs:
    """Library entry point: configure requests, resolve, and export."""

    def __init__(
        self,
        config: Optional[RunConfig] = None,
        store: Optional[SecretStore] = None,
        poller: Optional[CredentialActivationPoller] = None,
    ):
        self.config = config or RunConfig()
        self._store = store
        self._poller = poller
        self._requests: List[SecretRequest] = []

    @property
    def store(self) -> SecretStore:
        if self._store is None:
            self._store = HashicorpVaultSecretStore(
                address=self.config.vault_address,
                token=self.config.vault_token,
                namespace=self.config.vault_namespace,
            )
        return self._store

    @property
    def requests(self) -> Tuple[SecretRequest, ...]:
        return tuple(self._requests)

    def add_secret_requests(self, *requests: SecretRequest) -> None:
        self._requests.extend(requests)

    def load_config(self) -> None:
        """Append the requests named by the run configuration."""
        self._requests.extend(
            load_secret_requests(
                secret_config=self.config.secret_config,
                secret_config_file=self.config.secret_config_file,
            )
        )

    def resolve(self) -> List[ResolvedValue]:
        """Resolve every configured request against the store."""
        poller = self._poller or CredentialActivationPoller(
            config=self.config.activation
        )
        context = ResolutionContext.build(self.store, poller)
        return resolve_requests(context, self._requests)

    def display_env_exports(self, stream: Optional[IO[str]] = None) -> None:
        """Resolve everything, then write the export lines in one go."""
        output = format_exports(self.resolve())
        target = stream or sys.stdout
        target.write(output)
        target.flush()

    def get_envs(self) -> List[str]:
        return format_env(self.resolve())
