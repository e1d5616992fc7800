"""Mapping of user-supplied resource names onto Kubernetes API paths."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass, field


class MappingError(LookupError):
    """A resource could not be mapped, or its description is inconsistent."""


@dataclass(frozen=True)
class GroupVersionKind:
    """An API group, version and kind."""

    group: str = ""
    version: str = ""
    kind: str = ""

    def group_version(self) -> str:
        """Return the group/version string; the core group yields the version alone."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"


@dataclass(frozen=True)
class DiscoveredResource:
    """A resource type announced by discovery."""

    name: str
    kind: str
    namespaced: bool = False


@dataclass
class ResourceList:
    """The resources served under one group/version."""

    group_version: str
    resources: list[DiscoveredResource] = field(default_factory=list)


@dataclass(frozen=True)
class _Entry:
    group: str
    version: str
    resource: DiscoveredResource
    priority: tuple[int, int]


def _split_group_version(group_version: str) -> tuple[str, str]:
    group, _, version = group_version.rpartition("/")
    return group, version


class RESTMapper:
    """Resolves partial resource descriptions using discovery data.

    Groups are preferred in the order discovery lists them; within a group the
    first listed version is preferred.
    """

    def __init__(self, discovery: Iterable[ResourceList]) -> None:
        group_order: dict[str, int] = {}
        version_order: dict[str, dict[str, int]] = {}
        self._entries: list[_Entry] = []
        for resource_list in discovery:
            group, version = _split_group_version(resource_list.group_version)
            group_rank = group_order.setdefault(group, len(group_order))
            versions = version_order.setdefault(group, {})
            version_rank = versions.setdefault(version, len(versions))
            for resource in resource_list.resources:
                self._entries.append(_Entry(group, version, resource, (group_rank, version_rank)))
        self._entries.sort(key=lambda entry: entry.priority)

    def _match(self, group: str, version: str, resource: str) -> _Entry:
        wanted = resource.lower()
        for entry in self._entries:
            if group and entry.group != group:
                continue
            if version and entry.version != version:
                continue
            if wanted in (entry.resource.name.lower(), entry.resource.kind.lower()):
                return entry
        raise MappingError(
            f"no matches for group={group!r} version={version!r} resource={resource!r}"
        )

    def kind_for(self, group: str, version: str, resource: str) -> GroupVersionKind:
        """Return the kind served for a possibly partial resource description."""
        entry = self._match(group, version, resource)
        return GroupVersionKind(entry.group, entry.version, entry.resource.kind)

    def resource_for(self, group: str, version: str, resource: str) -> tuple[str, str, str]:
        """Return (group, version, plural resource) for a partial description."""
        entry = self._match(group, version, resource)
        return entry.group, entry.version, entry.resource.name

    def rest_mapping(self, group: str, kind: str, version: str = "") -> tuple[str, bool]:
        """Return (plural resource, cluster scoped) for a group and kind."""
        for entry in self._entries:
            if entry.group == group and entry.resource.kind == kind and (
                not version or entry.version == version
            ):
                return entry.resource.name, not entry.resource.namespaced
        raise MappingError(f'no matches for kind "{kind}" in version "{group}/{version}"')


def maybe_namespaced(name: str, namespace: str) -> str:
    """Return namespace/name, or just name when there is no namespace."""
    return f"{namespace}/{name}" if namespace else name


def maybe_core(group: str) -> str:
    """Return the group as a dotted suffix, with ".v1" for the core group."""
    return f".{group}" if group else ".v1"


def _join(*parts: str) -> str:
    kept = [part for part in parts if part]
    if not kept:
        return ""
    return posixpath.normpath("/".join(kept)).replace("//", "/")


@dataclass
class ApiResource:
    """A fully resolved resource reference."""

    gvk: GroupVersionKind
    name: str = ""
    namespace: str = ""
    cluster_scoped: bool = False
    resource: str = ""
    subresource: str = ""

    def _validate(self) -> ApiResource:
        if self.gvk.kind == "Namespace" and self.namespace and self.name != self.namespace:
            raise MappingError(
                f"specified namespace `{self.namespace}' doesn't match Namespace name: {self}"
            )
        return self

    def _segments(self) -> list[str]:
        if self.gvk.group:
            segments = ["/apis", self.gvk.group, self.gvk.version]
        else:
            segments = ["/api", self.gvk.version]
        if self.namespace and not self.cluster_scoped:
            segments += ["namespaces", self.namespace]
        if self.resource:
            segments.append(self.resource)
        return segments

    def __str__(self) -> str:
        return (
            f"{self.gvk.kind.lower()}.{self.gvk.group_version()} "
            f"`{maybe_namespaced(self.name, self.namespace)}'"
        )

    def group_version_resource(self) -> tuple[str, str, str]:
        """Return (group, version, resource)."""
        return self.gvk.group, self.gvk.version, self.resource

    def path(self) -> str:
        """Return the collection path of the resource."""
        return _join(*self._segments())

    def path_with_name(self) -> str:
        """Return the path of the named object, or the collection path without a name."""
        return _join(self.path(), self.name)

    def path_with_subresource(self) -> str:
        """Return the object path extended by the subresource, if any."""
        return _join(self.path_with_name(), self.subresource)


def new_resource(
    discovery: Iterable[ResourceList],
    name: str,
    namespace: str,
    api_group: str,
    resource: str,
    subresource: str,
) -> ApiResource:
    """Resolve a resource name, with an optional "group/version" api_group."""
    mapper = RESTMapper(discovery)
    version = ""
    parts = api_group.split("/")
    if len(parts) > 1:
        version = parts[-1]
        api_group = "/".join(parts[:-1])

    gvk = mapper.kind_for(api_group, version, resource)
    _, _, plural = mapper.resource_for(api_group, version, resource)
    return ApiResource(
        gvk=gvk, name=name, namespace=namespace, resource=plural, subresource=subresource
    )._validate()


def new_resource_for_kind(
    discovery: Iterable[ResourceList],
    name: str,
    namespace: str,
    subresource: str,
    gvk: GroupVersionKind,
) -> ApiResource:
    """Resolve a resource from a known group, version and kind."""
    plural, cluster_scoped = RESTMapper(discovery).rest_mapping(gvk.group, gvk.kind, gvk.version)
    return ApiResource(
        gvk=gvk,
        name=name,
        namespace="" if cluster_scoped else namespace,
        cluster_scoped=cluster_scoped,
        resource=plural,
        subresource=subresource,
    )._validate()