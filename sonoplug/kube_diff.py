"""Rendering Kubernetes objects and printing unified diffs between them."""

from __future__ import annotations

import copy
import difflib
import io
import json
import re
from collections.abc import Iterable
from typing import Any, TextIO

import yaml

from sonoplug.kube_api import GroupVersionKind, maybe_core
from sonoplug.kube_filter import filter_empty, filter_yaml

_CONTROLLER_FIELDS = (
    ("metadata", "selfLink"),
    ("metadata", "uid"),
    ("metadata", "generation"),
    ("metadata", "resourceVersion"),
    ("metadata", "creationTimestamp"),
    ("metadata", "annotations", "kubectl.kubernetes.io/last-applied-configuration"),
)

_KUBERNETES_FINALIZER = "kubernetes"

_KPATH_PART = re.compile(
    r'(?P<dot>\.)?(?:(?P<name>[^.\[\]"]+)|\["(?P<quoted>(?:[^"\\]|\\.)*)"\]|\[(?P<index>\d+)\])'
)


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps timestamp-like scalars as strings."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def split_kpath(path: str) -> list[str]:
    """Split a field path such as a.b["c.d"][0] into its elements."""
    if not path:
        raise ValueError("empty path")
    parts: list[str] = []
    pos = 0
    while pos < len(path):
        match = _KPATH_PART.match(path, pos)
        if match is None:
            raise ValueError(f"unexpected character at offset {pos} in {path!r}")
        dotted = match.group("dot") is not None
        if pos == 0 and dotted:
            raise ValueError(f"path {path!r} must not start with '.'")
        if match.group("name") is not None:
            if pos > 0 and not dotted:
                raise ValueError(f"expected '.' at offset {pos} in {path!r}")
            parts.append(match.group("name"))
        elif match.group("quoted") is not None:
            try:
                parts.append(json.loads('"' + match.group("quoted") + '"'))
            except json.JSONDecodeError as err:
                raise ValueError(f"bad quoted key in {path!r}: {err}") from err
        else:
            parts.append(match.group("index"))
        pos = match.end()
    if path.endswith("."):
        raise ValueError(f"path {path!r} must not end with '.'")
    return parts


def _kind(obj: Any) -> str:
    if isinstance(obj, dict):
        return obj.get("kind") or ""
    return ""


def _redact_secret(obj: dict[str, Any]) -> dict[str, Any]:
    if _kind(obj) != "Secret":
        return obj
    if isinstance(obj.get("data"), dict):
        obj["data"] = {key: None for key in obj["data"]}
    if isinstance(obj.get("stringData"), dict):
        obj["stringData"] = {key: "<redacted>" for key in obj["stringData"]}
    return obj


def render_obj(
    obj: dict[str, Any],
    gvk: GroupVersionKind | None = None,
    render_yaml: bool = True,
    diff_filters: Iterable[str] = (),
) -> str:
    """Render an object as YAML, or as tab-indented JSON when render_yaml is false.

    Secrets are redacted, controller-managed metadata is dropped, the given
    field-path filters are removed and empty mappings are pruned.
    """
    obj = _redact_secret(copy.deepcopy(obj))

    if not render_yaml:
        return json.dumps(obj, indent="\t", ensure_ascii=False)

    document: dict[Any, Any] = dict(obj)
    if gvk is not None and not _kind(obj):
        prefixed: dict[Any, Any] = {"kind": gvk.kind, "apiVersion": gvk.group_version()}
        for key, value in document.items():
            if key not in prefixed:
                prefixed[key] = value
        document = prefixed

    for path in _CONTROLLER_FIELDS:
        document = filter_yaml(document, *path)

    for diff_filter in diff_filters:
        try:
            path = split_kpath(diff_filter)
        except ValueError as err:
            raise ValueError(f'failed to parse diff filter ("{diff_filter}"): {err}') from err
        document = filter_yaml(document, *path)

    document = filter_empty(document)
    return yaml.safe_dump(
        document,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=2**31 - 1,
    )


def _remove_spurious_node_port_diff(live: Any, head: Any) -> None:
    if _kind(live) != "Service" or _kind(head) != "Service":
        return
    head_ports = (head.get("spec") or {}).get("ports") or []
    for live_port in (live.get("spec") or {}).get("ports") or []:
        for head_port in head_ports:
            if live_port.get("name", "") == head_port.get("name", ""):
                if live_port.get("nodePort", 0) and not head_port.get("nodePort", 0):
                    live_port.pop("nodePort", None)
                break


def _remove_kubernetes_finalizer(namespace: dict[str, Any]) -> None:
    finalizers = (namespace.get("spec") or {}).get("finalizers")
    if finalizers and _KUBERNETES_FINALIZER in finalizers:
        finalizers.remove(_KUBERNETES_FINALIZER)


def _remove_spurious_namespace_finalizer_diff(live: Any, head: Any) -> None:
    if _kind(live) != "Namespace" or _kind(head) != "Namespace":
        return
    _remove_kubernetes_finalizer(live)
    _remove_kubernetes_finalizer(head)


def _remove_spurious_service_account_token_diff(live: Any) -> None:
    if _kind(live) != "ServiceAccount":
        return
    generated_prefix = (live.get("metadata") or {}).get("name", "") + "-token"
    references = live.get("secrets") or []
    for index, entry in enumerate(references):
        if generated_prefix in entry.get("name", ""):
            del references[index]
            break


def remove_spurious_diff(live: Any, head: Any) -> tuple[Any, Any]:
    """Return copies of live and head without differences the API server introduces.

    Drops a server-assigned nodePort on live when head leaves it unset, the
    default "kubernetes" namespace finalizer on both, and the generated
    service account token on live.
    """
    if live is None or head is None:
        return live, head
    live, head = copy.deepcopy(live), copy.deepcopy(head)
    _remove_spurious_node_port_diff(live, head)
    _remove_spurious_namespace_finalizer_diff(live, head)
    _remove_spurious_service_account_token_diff(live)
    return live, head


def _split_lines(text: str) -> list[str]:
    return [line + "\n" for line in text.split("\n")]


def print_unified_diff(
    stream: TextIO,
    live: dict[str, Any] | None,
    head: dict[str, Any] | None,
    gvk: GroupVersionKind,
    name: str,
    diff_filters: Iterable[str] = (),
) -> None:
    """Write a unified diff of live against head, headed by the object's name.

    Nothing is written when the rendered objects are identical.
    """
    diff_filters = list(diff_filters)
    live, head = remove_spurious_diff(live, head)
    full_name = f"{gvk.kind.lower()}{maybe_core(gvk.group)} `{name}'"

    left = ""
    if live is not None:
        try:
            left = render_obj(live, None, True, diff_filters)
        except ValueError as err:
            raise ValueError(f"failed to render :live object for {full_name}: {err}") from err

    right = ""
    if head is not None:
        try:
            right = render_obj(head, gvk, True, diff_filters)
        except ValueError:
            right = ""

    diff = "".join(
        difflib.unified_diff(
            _split_lines(left),
            _split_lines(right),
            fromfile="a",
            tofile="b",
            n=5,
            lineterm="\n",
        )
    )
    if diff:
        stream.write(f"\n*** {full_name} ***\n")
        stream.write(diff)


def _decode(text: str) -> tuple[dict[str, Any], GroupVersionKind]:
    try:
        obj = yaml.load(text, Loader=_Loader)
    except yaml.YAMLError as err:
        raise ValueError(str(err)) from err
    if not isinstance(obj, dict):
        raise ValueError(f"expected a mapping, got {type(obj).__name__}")
    kind = obj.get("kind")
    if not kind:
        raise ValueError(f"Object 'Kind' is missing in '{text}'")
    group, _, version = str(obj.get("apiVersion") or "").rpartition("/")
    return obj, GroupVersionKind(group=group, version=version, kind=str(kind))


def kube_diff(left: str, right: str) -> str:
    """Return the unified diff between two YAML documents of Kubernetes objects."""
    decoded = []
    for index, text in enumerate((left, right)):
        if not isinstance(text, str):
            raise TypeError(
                f"item {index} is not a YAML string (got: {type(text).__name__})"
            )
        try:
            decoded.append(_decode(text))
        except ValueError as err:
            raise ValueError(f"item {index} is not a YAML string (got: string): {err}") from err

    (live, gvk), (head, _) = decoded
    buffer = io.StringIO()
    try:
        print_unified_diff(buffer, live, head, gvk, "", [])
    except ValueError as err:
        raise ValueError(f"unable to diff the given values: {err}") from err
    return buffer.getvalue()