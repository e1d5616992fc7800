import pytest

from sonoplug.kube_api import (
    ApiResource,
    DiscoveredResource,
    GroupVersionKind,
    MappingError,
    ResourceList,
    RESTMapper,
    maybe_core,
    maybe_namespaced,
    new_resource,
    new_resource_for_kind,
)

APPS = [
    DiscoveredResource("deployments", "Deployment", True),
    DiscoveredResource("replicasets", "ReplicaSet", True),
]


def fake_discovery():
    return [
        ResourceList(
            "v1",
            [
                DiscoveredResource("namespaces", "Namespace"),
                DiscoveredResource("nodes", "Node"),
                DiscoveredResource("pods", "Pod", True),
            ],
        ),
        ResourceList("apps/v1", APPS),
        ResourceList("apps/v1beta1", APPS),
        ResourceList(
            "apiextensions.k8s.io/v1beta1",
            [DiscoveredResource("customresourcedefinitions", "CustomResourceDefinition")],
        ),
        ResourceList(
            "apiextensions.k8s.io/v1",
            [DiscoveredResource("customresourcedefinitions", "CustomResourceDefinition")],
        ),
    ]


@pytest.mark.parametrize(
    "name,namespace,api_group,resource,want",
    [
        ("test-pod", "ns", "", "pod",
         ApiResource(GroupVersionKind("", "v1", "Pod"), "test-pod", "ns", resource="pods")),
        ("test-rs", "ns", "apps", "replicaset",
         ApiResource(GroupVersionKind("apps", "v1", "ReplicaSet"), "test-rs", "ns",
                     resource="replicasets")),
        ("test-crd", "", "apiextensions.k8s.io/v1", "customresourcedefinition",
         ApiResource(GroupVersionKind("apiextensions.k8s.io", "v1", "CustomResourceDefinition"),
                     "test-crd", "", resource="customresourcedefinitions")),
        ("test-crd", "", "apiextensions.k8s.io/v1beta1", "customresourcedefinition",
         ApiResource(GroupVersionKind("apiextensions.k8s.io", "v1beta1",
                                      "CustomResourceDefinition"),
                     "test-crd", "", resource="customresourcedefinitions")),
    ],
)
def test_new_resource(name, namespace, api_group, resource, want):
    assert new_resource(fake_discovery(), name, namespace, api_group, resource, "") == want


def test_unknown_resource_raises():
    with pytest.raises(MappingError):
        new_resource(fake_discovery(), "x", "", "", "widget", "")


def test_namespace_mismatch_raises():
    with pytest.raises(MappingError):
        new_resource(fake_discovery(), "a", "b", "", "namespace", "")


def test_paths():
    r = new_resource(fake_discovery(), "test-pod", "ns", "", "pods", "log")
    assert r.path() == "/api/v1/namespaces/ns/pods"
    assert r.path_with_name() == "/api/v1/namespaces/ns/pods/test-pod"
    assert r.path_with_subresource() == "/api/v1/namespaces/ns/pods/test-pod/log"
    assert str(r) == "pod.v1 `ns/test-pod'"


def test_for_kind_cluster_scoped_drops_namespace():
    r = new_resource_for_kind(fake_discovery(), "n1", "ns", "", GroupVersionKind("", "v1", "Node"))
    assert r.cluster_scoped and r.namespace == ""
    assert r.path_with_name() == "/api/v1/nodes/n1"


def test_group_path_and_gvr():
    r = new_resource_for_kind(
        fake_discovery(), "d", "ns", "", GroupVersionKind("apps", "v1", "Deployment")
    )
    assert r.path() == "/apis/apps/v1/namespaces/ns/deployments"
    assert r.group_version_resource() == ("apps", "v1", "deployments")


def test_mapper_and_helpers():
    mapper = RESTMapper(fake_discovery())
    assert mapper.kind_for("apps", "", "deployments").version == "v1"
    assert maybe_namespaced("n", "ns") == "ns/n"
    assert maybe_namespaced("n", "") == "n"
    assert maybe_core("") == ".v1"
    assert maybe_core("apps") == ".apps"