import io
import json

import pytest
import yaml

from sonoplug.kube_api import GroupVersionKind
from sonoplug.kube_diff import (
    kube_diff,
    print_unified_diff,
    remove_spurious_diff,
    render_obj,
    split_kpath,
)

NOW = "2022-03-01T10:00:00Z"

DIFF_FILTERS = [
    'metadata.annotations["isopod.getcruise.com/context"]',
    'metadata.annotations["deployment.kubernetes.io/revision"]',
    'metadata.annotations["autoscaling.alpha.kubernetes.io/conditions"]',
    'metadata.annotations["cloud.google.com/neg-status"]',
    "spec.template.spec.serviceAccount",
]

POD_GVK = GroupVersionKind(group="", version="v1", kind="Pod")


def multiline(*lines):
    return "\n".join(lines)


def container(port_name, port):
    return {
        "name": "nginx",
        "image": "nginx:latest",
        "ports": [{"name": port_name, "containerPort": port}],
        "resources": {},
    }


def test_no_diff():
    live = {
        "kind": "Pod",
        "apiVersion": "v1",
        "metadata": {"creationTimestamp": NOW},
        "spec": {"containers": [container("http", 80)]},
        "status": {"startTime": NOW},
    }
    head = {
        "kind": "Pod",
        "apiVersion": "v1",
        "metadata": {"creationTimestamp": None},
        "spec": {"containers": [container("http", 80)]},
        "status": {"startTime": NOW},
    }
    out = io.StringIO()
    print_unified_diff(out, live, head, POD_GVK, "foobar", DIFF_FILTERS)
    assert out.getvalue() == ""


def test_pod_diff():
    live = {
        "kind": "Pod",
        "apiVersion": "v1",
        "metadata": {
            "creationTimestamp": NOW,
            "annotations": {
                "isopod.getcruise.com/context": "any value",
                "deployment.kubernetes.io/revision": "3",
            },
        },
        "spec": {"containers": [container("http", 80)]},
        "status": {},
    }
    head = {
        "metadata": {"creationTimestamp": None},
        "spec": {"containers": [container("https", 443)]},
        "status": {},
    }
    want = multiline(
        "",
        "*** pod.v1 `foobar' ***",
        "--- a",
        "+++ b",
        "@@ -3,9 +3,9 @@",
        " spec:",
        "   containers:",
        "   - name: nginx",
        "     image: nginx:latest",
        "     ports:",
        "-    - name: http",
        "-      containerPort: 80",
        "+    - name: https",
        "+      containerPort: 443",
        "     resources: {}",
        " ",
        "",
    )
    out = io.StringIO()
    print_unified_diff(out, live, head, POD_GVK, "foobar", DIFF_FILTERS)
    assert out.getvalue() == want


def test_diff_without_live_adds_everything():
    head = {"spec": {"containers": [container("http", 80)]}}
    out = io.StringIO()
    print_unified_diff(out, None, head, POD_GVK, "ns/web", [])
    text = out.getvalue()
    assert text.startswith("\n*** pod.v1 `ns/web' ***\n--- a\n+++ b\n")
    assert "+kind: Pod\n" in text
    assert "+apiVersion: v1\n" in text


def test_diff_header_for_named_group():
    gvk = GroupVersionKind(group="apps", version="v1", kind="Deployment")
    live = {"kind": "Deployment", "apiVersion": "apps/v1", "spec": {"replicas": 1}}
    head = {"kind": "Deployment", "apiVersion": "apps/v1", "spec": {"replicas": 2}}
    out = io.StringIO()
    print_unified_diff(out, live, head, gvk, "web", [])
    text = out.getvalue()
    assert text.startswith("\n*** deployment.apps `web' ***\n")
    assert "-  replicas: 1\n" in text
    assert "+  replicas: 2\n" in text


def test_bad_live_filter_reports_live_render_failure():
    live = {"kind": "Pod", "apiVersion": "v1"}
    with pytest.raises(ValueError, match="failed to render :live object for pod.v1"):
        print_unified_diff(io.StringIO(), live, live, POD_GVK, "x", ['a["unterminated'])


@pytest.mark.parametrize(
    "path, expected",
    [
        (
            'metadata.annotations["isopod.getcruise.com/context"]',
            ["metadata", "annotations", "isopod.getcruise.com/context"],
        ),
        ("spec.template.spec.serviceAccount", ["spec", "template", "spec", "serviceAccount"]),
        ("spec.ports[0].name", ["spec", "ports", "0", "name"]),
        ("metadata", ["metadata"]),
    ],
)
def test_split_kpath(path, expected):
    assert split_kpath(path) == expected


@pytest.mark.parametrize("path", ["", ".a", "a.", 'a["b', "a..b", "a]"])
def test_split_kpath_rejects_malformed(path):
    with pytest.raises(ValueError):
        split_kpath(path)


def test_render_obj_redacts_secrets():
    manifest = {
        "kind": "Secret",
        "apiVersion": "v1",
        "data": {"token": "token"},
        "stringData": {"token": "token"},
    }
    rendered = yaml.safe_load(render_obj(manifest, None, True, []))
    assert rendered["data"] == {"token": None}
    assert rendered["stringData"] == {"token": "<redacted>"}
    assert manifest["data"] == {"token": "token"}


def test_render_obj_drops_controller_fields():
    obj = {
        "kind": "ConfigMap",
        "apiVersion": "v1",
        "metadata": {
            "name": "cm",
            "uid": "abc",
            "selfLink": "/api/v1/x",
            "generation": 3,
            "resourceVersion": "12",
            "creationTimestamp": NOW,
            "annotations": {
                "kubectl.kubernetes.io/last-applied-configuration": "{}",
                "keep": "yes",
            },
        },
    }
    rendered = yaml.safe_load(render_obj(obj, None, True, []))
    assert rendered["metadata"] == {"name": "cm", "annotations": {"keep": "yes"}}


def test_render_obj_prepends_kind_from_gvk():
    gvk = GroupVersionKind(group="apps", version="v1", kind="Deployment")
    text = render_obj({"spec": {"replicas": 2}}, gvk, True, [])
    assert text.splitlines()[:2] == ["kind: Deployment", "apiVersion: apps/v1"]


def test_render_obj_keeps_existing_kind():
    gvk = GroupVersionKind(group="apps", version="v1", kind="Deployment")
    text = render_obj({"kind": "Pod", "apiVersion": "v1"}, gvk, True, [])
    assert yaml.safe_load(text) == {"kind": "Pod", "apiVersion": "v1"}


def test_render_obj_json():
    obj = {"kind": "Pod", "apiVersion": "v1", "spec": {"containers": []}}
    text = render_obj(obj, None, False, [])
    assert json.loads(text) == obj
    assert "\n\t\"kind\"" in text


def test_render_obj_prunes_empty_mappings():
    obj = {"kind": "Pod", "metadata": {"annotations": {}}, "status": {}}
    assert yaml.safe_load(render_obj(obj, None, True, [])) == {"kind": "Pod"}


def test_render_obj_applies_custom_filters():
    obj = {"kind": "Pod", "spec": {"serviceAccount": "default", "hostname": "h"}}
    rendered = yaml.safe_load(render_obj(obj, None, True, ["spec.serviceAccount"]))
    assert rendered == {"kind": "Pod", "spec": {"hostname": "h"}}


def test_render_obj_bad_filter():
    with pytest.raises(ValueError, match="failed to parse diff filter"):
        render_obj({"kind": "Pod"}, None, True, ['metadata["x'])


def test_remove_spurious_node_port():
    live = {
        "kind": "Service",
        "spec": {"ports": [{"name": "http", "port": 80, "nodePort": 30080}]},
    }
    head = {"kind": "Service", "spec": {"ports": [{"name": "http", "port": 80}]}}
    new_live, new_head = remove_spurious_diff(live, head)
    assert new_live["spec"]["ports"] == [{"name": "http", "port": 80}]
    assert new_head == head
    assert live["spec"]["ports"][0]["nodePort"] == 30080


def test_node_port_kept_when_head_sets_it():
    live = {"kind": "Service", "spec": {"ports": [{"name": "http", "nodePort": 30080}]}}
    head = {"kind": "Service", "spec": {"ports": [{"name": "http", "nodePort": 30081}]}}
    new_live, _ = remove_spurious_diff(live, head)
    assert new_live["spec"]["ports"][0]["nodePort"] == 30080


def test_remove_namespace_finalizer():
    live = {"kind": "Namespace", "spec": {"finalizers": ["kubernetes", "custom"]}}
    head = {"kind": "Namespace", "spec": {"finalizers": ["custom", "kubernetes"]}}
    new_live, new_head = remove_spurious_diff(live, head)
    assert new_live["spec"]["finalizers"] == ["custom"]
    assert new_head["spec"]["finalizers"] == ["custom"]


def test_remove_service_account_token():
    live = {
        "kind": "ServiceAccount",
        "metadata": {"name": "builder"},
        "secrets": [{"name": "builder-token-abcde"}, {"name": "other"}],
    }
    head = {"kind": "ServiceAccount", "metadata": {"name": "builder"}}
    new_live, _ = remove_spurious_diff(live, head)
    assert new_live["secrets"] == [{"name": "other"}]


def test_remove_spurious_diff_passes_none_through():
    obj = {"kind": "Pod"}
    assert remove_spurious_diff(None, obj) == (None, obj)
    assert remove_spurious_diff(obj, None) == (obj, None)


POD_YAML = """\
apiVersion: v1
kind: Pod
metadata:
  name: web
spec:
  containers:
  - name: nginx
    image: {image}
"""


def test_kube_diff_identical():
    text = POD_YAML.format(image="nginx:1")
    assert kube_diff(text, text) == ""


def test_kube_diff_reports_changes():
    out = kube_diff(POD_YAML.format(image="nginx:1"), POD_YAML.format(image="nginx:2"))
    assert out.startswith("\n*** pod.v1 `' ***\n--- a\n+++ b\n")
    assert "-    image: nginx:1\n" in out
    assert "+    image: nginx:2\n" in out


def test_kube_diff_requires_strings():
    with pytest.raises(TypeError, match="item 1 is not a YAML string"):
        kube_diff(POD_YAML.format(image="a"), 5)


def test_kube_diff_requires_kind():
    with pytest.raises(ValueError, match="item 0 is not a YAML string"):
        kube_diff("metadata:\n  name: x\n", POD_YAML.format(image="a"))