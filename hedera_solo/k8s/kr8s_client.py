"""Kr8s-based implementation of K8Client.

Uses the kr8s library for native async Kubernetes operations.
"""

from collections.abc import Generator
from contextlib import contextmanager
import logging
from typing import Any

import kr8s
from kr8s.asyncio.objects import (
    ConfigMap,
    Namespace,
    PersistentVolumeClaim,
    Pod,
    Secret,
    new_class,
)

from hedera_solo.exceptions import KubernetesException

from .client import K8Client, K8Factory, NOT_FOUND
from .resources import (
    LEASE_API_VERSION,
    LEASE_KIND,
    ConfigMapRecord,
    LeaseRecord,
    PodInfo,
    format_micro_time,
    utcnow,
)

__all__ = [
    "Kr8sClient",
    "Kr8sFactory",
]

_LOGGER = logging.getLogger(__name__)

Lease = new_class(kind=LEASE_KIND, version=LEASE_API_VERSION, namespaced=True)


def _status_code(err: kr8s.ServerError) -> int | None:
    response = getattr(err, "response", None)
    return getattr(response, "status_code", None)


@contextmanager
def _api_errors(action: str) -> Generator[None, None, None]:
    """Translate kr8s errors into KubernetesException."""
    try:
        yield
    except kr8s.NotFoundError as err:
        raise KubernetesException(f"Failed to {action}: {err}", NOT_FOUND) from err
    except kr8s.ServerError as err:
        raise KubernetesException(
            f"Failed to {action}: {err}", _status_code(err)
        ) from err
    except kr8s.APITimeoutError as err:
        raise KubernetesException(f"Failed to {action}: {err}") from err


class Kr8sClient(K8Client):
    """Kubernetes client using the kr8s library.

    The kr8s API object is not cached on the client because it is bound to the
    event loop that was running when it was created.
    """

    async def _api(self) -> Any:
        return await kr8s.asyncio.api(context=self._context)

    async def _get(self, cls: Any, name: str, namespace: str | None = None) -> Any:
        """Fetch an object, returning None if it does not exist."""
        api = await self._api()
        try:
            if namespace is None:
                return await cls.get(name, api=api)
            return await cls.get(name, namespace=namespace, api=api)
        except kr8s.NotFoundError:
            return None
        except kr8s.ServerError as err:
            if _status_code(err) == NOT_FOUND:
                return None
            raise

    async def _delete(self, cls: Any, name: str, namespace: str | None = None) -> bool:
        with _api_errors(f"delete {cls.__name__} {name}"):
            if (obj := await self._get(cls, name, namespace)) is None:
                return False
            try:
                await obj.delete()
            except kr8s.NotFoundError:
                return False
        _LOGGER.debug("Deleted %s %s", cls.__name__, name)
        return True

    async def has_namespace(self, name: str) -> bool:
        with _api_errors(f"read namespace {name}"):
            return await self._get(Namespace, name) is not None

    async def create_namespace(self, name: str) -> None:
        api = await self._api()
        with _api_errors(f"create namespace {name}"):
            ns = Namespace(
                {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}},
                api=api,
            )
            await ns.create()
        _LOGGER.info("Created namespace %s", name)

    async def delete_namespace(self, name: str) -> bool:
        return await self._delete(Namespace, name)

    async def read_config_map(
        self, namespace: str, name: str
    ) -> ConfigMapRecord | None:
        with _api_errors(f"read config map {namespace}/{name}"):
            if (obj := await self._get(ConfigMap, name, namespace)) is None:
                return None
            return ConfigMapRecord.parse_doc(obj.raw)

    async def list_config_maps(
        self, namespace: str, selector: str
    ) -> list[ConfigMapRecord]:
        api = await self._api()
        results = []
        with _api_errors(f"list config maps in {namespace}"):
            async for obj in ConfigMap.list(
                namespace=namespace, label_selector=selector, api=api
            ):
                results.append(ConfigMapRecord.parse_doc(obj.raw))
        return results

    async def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
    ) -> ConfigMapRecord:
        api = await self._api()
        with _api_errors(f"create config map {namespace}/{name}"):
            obj = ConfigMap(
                {
                    "apiVersion": "v1",
                    "kind": "ConfigMap",
                    "metadata": {
                        "name": name,
                        "namespace": namespace,
                        "labels": labels,
                    },
                    "data": data,
                },
                api=api,
            )
            await obj.create()
        return ConfigMapRecord.parse_doc(obj.raw)

    async def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        resource_version: str | None = None,
    ) -> ConfigMapRecord:
        with _api_errors(f"replace config map {namespace}/{name}"):
            if (obj := await self._get(ConfigMap, name, namespace)) is None:
                raise KubernetesException(
                    f"Config map {namespace}/{name} does not exist", NOT_FOUND
                )
            metadata: dict[str, Any] = {"labels": labels}
            if resource_version is not None:
                metadata["resourceVersion"] = resource_version
            await obj.patch({"metadata": metadata, "data": data})
        return ConfigMapRecord.parse_doc(obj.raw)

    async def delete_config_map(self, namespace: str, name: str) -> bool:
        return await self._delete(ConfigMap, name, namespace)

    async def read_lease(self, namespace: str, name: str) -> LeaseRecord | None:
        with _api_errors(f"read lease {namespace}/{name}"):
            if (obj := await self._get(Lease, name, namespace)) is None:
                return None
            return LeaseRecord.parse_doc(obj.raw)

    async def create_lease(
        self, namespace: str, name: str, holder_identity: str, duration: int
    ) -> LeaseRecord:
        api = await self._api()
        now = utcnow()
        with _api_errors(f"create lease {namespace}/{name}"):
            obj = Lease(
                {
                    "apiVersion": LEASE_API_VERSION,
                    "kind": LEASE_KIND,
                    "metadata": {"name": name, "namespace": namespace},
                    "spec": {
                        "holderIdentity": holder_identity,
                        "leaseDurationSeconds": duration,
                        "acquireTime": format_micro_time(now),
                        "renewTime": format_micro_time(now),
                        "leaseTransitions": 0,
                    },
                },
                api=api,
            )
            await obj.create()
        return LeaseRecord.parse_doc(obj.raw)

    async def replace_lease(self, lease: LeaseRecord) -> LeaseRecord:
        with _api_errors(f"replace lease {lease.namespace}/{lease.name}"):
            if (obj := await self._get(Lease, lease.name, lease.namespace)) is None:
                raise KubernetesException(
                    f"Lease {lease.namespace}/{lease.name} does not exist", NOT_FOUND
                )
            metadata: dict[str, Any] = {}
            if lease.resource_version is not None:
                metadata["resourceVersion"] = lease.resource_version
            await obj.patch({"metadata": metadata, "spec": lease.spec()})
        return LeaseRecord.parse_doc(obj.raw)

    async def delete_lease(self, namespace: str, name: str) -> bool:
        return await self._delete(Lease, name, namespace)

    async def list_pods(self, namespace: str, selector: str) -> list[PodInfo]:
        api = await self._api()
        results = []
        with _api_errors(f"list pods in {namespace}"):
            async for pod in Pod.list(
                namespace=namespace, label_selector=selector, api=api
            ):
                results.append(PodInfo.parse_doc(pod.raw))
        return results

    async def list_pvcs(self, namespace: str, selector: str | None = None) -> list[str]:
        api = await self._api()
        kwargs: dict[str, Any] = {"namespace": namespace, "api": api}
        if selector:
            kwargs["label_selector"] = selector
        with _api_errors(f"list persistent volume claims in {namespace}"):
            return [pvc.name async for pvc in PersistentVolumeClaim.list(**kwargs)]

    async def delete_pvc(self, namespace: str, name: str) -> bool:
        return await self._delete(PersistentVolumeClaim, name, namespace)

    async def list_secrets(
        self, namespace: str, selector: str | None = None
    ) -> list[str]:
        api = await self._api()
        kwargs: dict[str, Any] = {"namespace": namespace, "api": api}
        if selector:
            kwargs["label_selector"] = selector
        with _api_errors(f"list secrets in {namespace}"):
            return [secret.name async for secret in Secret.list(**kwargs)]

    async def delete_secret(self, namespace: str, name: str) -> bool:
        return await self._delete(Secret, name, namespace)


class Kr8sFactory(K8Factory):
    """Creates kr8s backed clients per kube context."""

    def _new_client(self, context: str | None) -> K8Client:
        return Kr8sClient(context)
