"""Shared fixtures for hedera-solo tests."""

from collections.abc import AsyncGenerator, Callable
import pathlib
import stat

import pytest

from hedera_solo.config import LeaseConfig, ReadinessConfig, SoloConfig
from hedera_solo.helm import Helm
from hedera_solo.k8s.in_memory import InMemoryK8Client, InMemoryK8Factory
from hedera_solo.lease import LeaseHolder, LeaseManager, LeaseRenewalService
from hedera_solo.local_config import Deployment, LocalConfig
from hedera_solo.task.service import TaskServiceImpl

NAMESPACE = "solo"
USER_EMAIL = "operator@example.com"

# Stand-in for the helm binary: records each invocation, reports the
# releases named in $HELM_RELEASES and sleeps $HELM_UNINSTALL_DELAY seconds
# before an uninstall.
FAKE_HELM = """#!/bin/sh
echo "$@" >> "{log}"
case "$1" in
  list)
    printf '['
    sep=''
    for name in $HELM_RELEASES; do
      printf '%s{{"name": "%s", "namespace": "solo", "status": "deployed"}}' "$sep" "$name"
      sep=','
    done
    printf ']'
    ;;
  uninstall)
    sleep "${{HELM_UNINSTALL_DELAY:-0}}"
    ;;
esac
"""


@pytest.fixture(name="task_service")
async def task_service_fixture() -> AsyncGenerator[TaskServiceImpl, None]:
    """Task service that stops leftover background tasks after the test."""
    service = TaskServiceImpl()
    yield service
    await service.shutdown()


@pytest.fixture(name="k8_factory")
def k8_factory_fixture() -> InMemoryK8Factory:
    """In-memory clusters keyed by kube context."""
    return InMemoryK8Factory()


@pytest.fixture(name="client")
def client_fixture(k8_factory: InMemoryK8Factory) -> InMemoryK8Client:
    """Client of the primary cluster."""
    client = k8_factory.get(None)
    assert isinstance(client, InMemoryK8Client)
    return client


@pytest.fixture(name="lease_config")
def lease_config_fixture() -> LeaseConfig:
    """Lease timings short enough for tests."""
    return LeaseConfig(
        duration_seconds=20,
        acquire_attempts=3,
        backoff_base_seconds=0.01,
        backoff_max_seconds=0.02,
        read_retries=2,
        read_retry_delay=0.01,
    )


@pytest.fixture(name="solo_config")
def solo_config_fixture(lease_config: LeaseConfig) -> SoloConfig:
    """Configuration bound to the test namespace."""
    return SoloConfig(
        namespace=NAMESPACE,
        lease=lease_config,
        readiness=ReadinessConfig(
            pods_running_max_attempts=3,
            pods_running_delay=0.01,
            pods_ready_max_attempts=3,
            pods_ready_delay=0.01,
            network_destroy_timeout=5.0,
            helm_timeout=10.0,
        ),
    )


@pytest.fixture(name="holder")
def holder_fixture() -> LeaseHolder:
    """Identity of the test process."""
    return LeaseHolder.default()


@pytest.fixture(name="renewal_service")
def renewal_service_fixture(task_service: TaskServiceImpl) -> LeaseRenewalService:
    """Renewal service bound to the test task service."""
    return LeaseRenewalService(task_service)


@pytest.fixture(name="lease_manager")
def lease_manager_fixture(
    client: InMemoryK8Client,
    solo_config: SoloConfig,
    renewal_service: LeaseRenewalService,
    holder: LeaseHolder,
) -> LeaseManager:
    """Lease manager for the test namespace."""
    return LeaseManager(client, solo_config, renewal_service, holder)


@pytest.fixture(name="local_config")
def local_config_fixture() -> LocalConfig:
    """Local config with a single cluster deployment named after the namespace."""
    return LocalConfig(
        user_email_address=USER_EMAIL,
        deployments={NAMESPACE: Deployment(clusters=["c1"])},
        cluster_refs={"c1": "kind-c1"},
        current_deployment_name=NAMESPACE,
    )


@pytest.fixture(name="helm_log")
def helm_log_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """File recording the arguments of every helm invocation."""
    return tmp_path / "helm.log"


@pytest.fixture(name="helm")
def helm_fixture(tmp_path: pathlib.Path, helm_log: pathlib.Path) -> Helm:
    """Helm pointed at a shell script standing in for the helm binary."""
    script = tmp_path / "helm"
    script.write_text(FAKE_HELM.format(log=helm_log))
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return Helm(str(script))


@pytest.fixture(name="helm_calls")
def helm_calls_fixture(helm_log: pathlib.Path) -> Callable[[], list[str]]:
    """Return a callable listing the recorded helm invocations."""

    def calls() -> list[str]:
        if not helm_log.exists():
            return []
        return helm_log.read_text().splitlines()

    return calls
