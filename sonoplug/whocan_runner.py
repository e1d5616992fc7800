"""Running who-can queries over every resource, verb and namespace."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from sonoplug.whocan_results import Bindings, Result, Subject


class CheckerError(RuntimeError):
    """A who-can check failed."""


@dataclass(frozen=True)
class Action:
    """A single who-can query: may anyone perform a verb on a resource?"""

    verb: str
    resource: str
    sub_resource: str = ""
    namespace: str = ""
    all_namespaces: bool = False


@dataclass
class APIResource:
    """A resource type served by the API server."""

    name: str
    namespaced: bool = False
    kind: str = ""
    verbs: list[str] = field(default_factory=list)


@dataclass
class RoleBinding:
    """A role binding or cluster role binding and the subjects it binds."""

    name: str
    subjects: list[Subject] = field(default_factory=list)


class Checker(Protocol):
    """Answers who-can queries."""

    def check(self, action: Action) -> tuple[list[RoleBinding], list[RoleBinding]]:
        """Return the role bindings and cluster role bindings that allow the action."""
        ...


class _Discovery(Protocol):
    def server_preferred_resources(self) -> Iterable[str]: ...

    def server_resources_for_group_version(self, group_version: str) -> Iterable[APIResource]: ...


def create_action(resource: str, verb: str, namespace: str) -> Action:
    """Build the Action for a resource name (possibly resource/subresource), verb and namespace.

    A resource beginning with "/" is left whole as a non-resource URL.
    The namespace "*" means all namespaces.
    """
    sub_resource = ""
    if not resource.startswith("/"):
        resource, _, sub_resource = resource.partition("/")

    all_namespaces = namespace == "*"
    if all_namespaces:
        namespace = ""

    return Action(
        verb=verb,
        resource=resource,
        sub_resource=sub_resource,
        namespace=namespace,
        all_namespaces=all_namespaces,
    )


def create_actions(namespaces: Iterable[str], resources: Iterable[APIResource]) -> list[Action]:
    """Build an action for every namespace, resource and verb, in that nesting order."""
    resources = list(resources)
    return [
        create_action(resource.name, verb, namespace)
        for namespace in namespaces
        for resource in resources
        for verb in resource.verbs
    ]


def create_result(
    action: Action,
    role_bindings: Iterable[RoleBinding],
    cluster_role_bindings: Iterable[RoleBinding],
) -> Result:
    """Collect the bindings found for an action into a Result keyed by subject."""
    resource = action.resource
    if action.sub_resource:
        resource += "/" + action.sub_resource

    subjects: dict[Subject, Bindings] = {}
    for binding in role_bindings:
        for subject in binding.subjects:
            subjects.setdefault(subject, Bindings()).role_bindings.append(binding.name)
    for binding in cluster_role_bindings:
        for subject in binding.subjects:
            subjects.setdefault(subject, Bindings()).cluster_role_bindings.append(binding.name)

    return Result(
        resource=resource,
        verb=action.verb,
        namespace="*" if action.all_namespaces else action.namespace,
        subjects=subjects,
    )


@dataclass
class Runner:
    """Runs every action through a checker."""

    checker: Checker

    def run(self, namespaces: Iterable[str], resources: Iterable[APIResource]) -> list[Result]:
        """Check all actions and return one Result per action.

        Raises CheckerError if any check fails.
        """
        results = []
        for action in create_actions(namespaces, resources):
            try:
                role_bindings, cluster_role_bindings = self.checker.check(action)
            except Exception as err:
                raise CheckerError(f"running checker: {err}") from err
            results.append(create_result(action, role_bindings, cluster_role_bindings))
        return results


def _normalise_group_version(group_version: str) -> str:
    if group_version == "":
        return ""
    if group_version.count("/") > 1:
        raise ValueError(f"unexpected GroupVersion string: {group_version}")
    group, _, version = group_version.rpartition("/")
    return f"{group}/{version}" if group else version


def get_api_resources(discovery: _Discovery | None) -> list[APIResource]:
    """List the server's preferred resources, keeping the first of any duplicate names."""
    if discovery is None:
        raise ValueError("cannot get server resources, no discovery client available")

    resources = []
    seen: set[str] = set()
    for group_version in discovery.server_preferred_resources():
        try:
            normalised = _normalise_group_version(group_version)
        except ValueError as err:
            raise ValueError(f"parsing schema: {err}") from err
        for resource in discovery.server_resources_for_group_version(normalised):
            if resource.name in seen:
                continue
            seen.add(resource.name)
            resources.append(resource)
    return resources