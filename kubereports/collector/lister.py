"""Control-plane list access for report resources.

ReportLister          -- Protocol the collector depends on: one bounded page per call.
KubernetesReportLister -- kubernetes-asyncio implementation over CustomObjectsApi.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from kubereports.models.reports import ReportPage, ReportResource


class ResourceNotFoundError(Exception):
    """The resource type does not exist in this cluster (CRD not installed)."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"Resource {resource} not found in cluster")
        self.resource = resource


class ListError(Exception):
    """A list call failed for any reason other than an unknown resource type."""

    def __init__(self, resource: str, cause: Exception) -> None:
        super().__init__(f"failed to list {resource}: {cause}")
        self.resource = resource
        self.cause = cause


@runtime_checkable
class ReportLister(Protocol):
    """Anything that can fetch one page of a report resource."""

    async def list_page(
        self,
        resource: ReportResource,
        limit: int,
        continue_token: str = "",
    ) -> ReportPage:
        """Return up to *limit* items and the continuation token ("" when done).

        Raises:
            ResourceNotFoundError: the resource type is unknown to the cluster.
            ListError:             any other failure.
        """
        ...


class KubernetesReportLister:
    """Lists report custom resources cluster-wide via kubernetes-asyncio.

    Args:
        api: A ``CustomObjectsApi`` instance. Created lazily when omitted so that
             the client configuration has been loaded by the time it is built.
    """

    def __init__(self, api: Any | None = None) -> None:
        self._api = api
        self._api_client: Any = None

    def _custom_objects(self) -> Any:
        if self._api is None:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            self._api_client = k8s_client.ApiClient()
            self._api = k8s_client.CustomObjectsApi(self._api_client)
        return self._api

    async def close(self) -> None:
        """Close the connection pool of the ApiClient this lister created."""
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None
            self._api = None

    async def list_page(
        self,
        resource: ReportResource,
        limit: int,
        continue_token: str = "",
    ) -> ReportPage:
        kwargs: dict[str, Any] = {"limit": limit}
        if continue_token:
            kwargs["_continue"] = continue_token
        try:
            response = await self._custom_objects().list_cluster_custom_object(
                resource.group,
                resource.version,
                resource.name,
                **kwargs,
            )
        except ApiException as exc:
            if exc.status == 404:
                raise ResourceNotFoundError(resource.name) from exc
            raise ListError(resource.name, exc) from exc
        except Exception as exc:
            raise ListError(resource.name, exc) from exc

        items = response.get("items") or []
        metadata = response.get("metadata") or {}
        return ReportPage(items=list(items), continue_token=metadata.get("continue") or "")
