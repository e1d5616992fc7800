"""Results of who-can queries and the reports written from them."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TextIO

import yaml


@dataclass(frozen=True)
class Subject:
    """An RBAC subject: a user, group or service account."""

    kind: str
    name: str
    namespace: str = ""
    api_group: str = ""


@dataclass
class Bindings:
    """Names of the role bindings and cluster role bindings granting a subject access."""

    role_bindings: list[str] = field(default_factory=list)
    cluster_role_bindings: list[str] = field(default_factory=list)


@dataclass
class Result:
    """The subjects allowed to perform one verb on one resource in one namespace."""

    resource: str
    verb: str
    namespace: str
    subjects: dict[Subject, Bindings] = field(default_factory=dict)


@dataclass
class SonobuoyResultsItem:
    """One node of a Sonobuoy manual results tree."""

    name: str
    status: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    details: dict[str, str] = field(default_factory=dict)
    items: list[SonobuoyResultsItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the item as the mapping serialised into the report."""
        out: dict[str, Any] = {"name": self.name}
        if self.status:
            out["status"] = self.status
        if self.metadata:
            out["meta"] = dict(sorted(self.metadata.items()))
        if self.details:
            out["details"] = dict(sorted(self.details.items()))
        if self.items:
            out["items"] = [item.to_dict() for item in self.items]
        return out


_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _dump_json(value: Any) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _GO_ESCAPES.items():
        text = text.replace(char, escape)
    return text


def _subject_fields(subject: Subject) -> dict[str, str]:
    fields = {"kind": subject.kind}
    if subject.api_group:
        fields["apiGroup"] = subject.api_group
    fields["name"] = subject.name
    if subject.namespace:
        fields["namespace"] = subject.namespace
    return fields


def _binding_fields(bindings: Bindings) -> dict[str, list[str]]:
    fields = {}
    if bindings.role_bindings:
        fields["role-bindings"] = list(bindings.role_bindings)
    if bindings.cluster_role_bindings:
        fields["cluster-role-bindings"] = list(bindings.cluster_role_bindings)
    return fields


def _result_fields(result: Result) -> dict[str, Any]:
    subjects = [
        {**_subject_fields(subject), **_binding_fields(bindings)}
        for subject, bindings in result.subjects.items()
    ]
    return {
        "resource": result.resource,
        "verb": result.verb,
        "namespace": result.namespace,
        "subjects": subjects or None,
    }


def results_by_subject(results: Iterable[Result]) -> dict[Subject, dict[str, list[dict[str, Any]]]]:
    """Regroup results as subject -> namespace -> permitted actions.

    Each action is a mapping with resource, verb and the non-empty binding lists.
    """
    by_subject: dict[Subject, dict[str, list[dict[str, Any]]]] = {}
    for result in results:
        for subject, bindings in result.subjects.items():
            namespaces = by_subject.setdefault(subject, {})
            namespaces.setdefault(result.namespace, []).append(
                {"resource": result.resource, "verb": result.verb, **_binding_fields(bindings)}
            )
    return by_subject


def write_subjects_report(results: Iterable[Result], stream: TextIO) -> None:
    """Write the JSON report of permissions grouped by subject."""
    by_subject = results_by_subject(results)
    report = [
        {
            **_subject_fields(subject),
            "permissions": [
                {"namespace": namespace, "actions": actions}
                for namespace, actions in namespaces.items()
            ],
        }
        for subject, namespaces in by_subject.items()
    ]
    stream.write(_dump_json(report or None))


def write_resources_report(results: Iterable[Result], stream: TextIO) -> None:
    """Write the JSON report of subjects grouped by resource action."""
    stream.write(_dump_json([_result_fields(result) for result in results]))


def create_sonobuoy_results_for_result(result: Result) -> list[SonobuoyResultsItem]:
    """Turn one result into a Sonobuoy results item per subject."""
    items = []
    for subject, bindings in result.subjects.items():
        details = {
            "subject-name": subject.name,
            "subject-kind": subject.kind,
            "verb": result.verb,
            "resource": result.resource,
            "namespace": result.namespace,
        }
        if subject.namespace:
            details["subject-namespace"] = subject.namespace
        if bindings.role_bindings:
            details["role-bindings"] = ", ".join(bindings.role_bindings)
        if bindings.cluster_role_bindings:
            details["cluster-role-bindings"] = ", ".join(bindings.cluster_role_bindings)
        items.append(
            SonobuoyResultsItem(
                name=f"{subject.name} can {result.verb} {result.resource} in {result.namespace}",
                status="complete",
                details=details,
            )
        )
    return items


def write_sonobuoy_report(results: Iterable[Result], stream: TextIO) -> None:
    """Write the Sonobuoy manual results YAML for all results."""
    root = SonobuoyResultsItem(name="who-can", status="complete")
    for result in results:
        root.items.extend(create_sonobuoy_results_for_result(result))
    stream.write(
        yaml.safe_dump(root.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True)
    )