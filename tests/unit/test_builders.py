"""Tests for the Dex object builders."""

from __future__ import annotations

import base64

import pytest

from dex_operator.builders.deployment import build_deployment, get_dex_image
from dex_operator.builders.rbac import (
    build_cluster_role,
    build_cluster_role_binding,
    build_service_account,
)
from dex_operator.builders.route import build_route, issuer_host
from dex_operator.builders.secret import build_mtls_secret
from dex_operator.builders.service import build_grpc_service, build_web_service
from dex_operator.models import DexServerInstance
from dex_operator.utils.certificates import MTLSBundle
from dex_operator.utils.errors import InvalidIssuerError, MissingImageError


class TestMTLSSecret:
    """Test cases for build_mtls_secret."""

    def test_secret(self, instance):
        """Test that the bundle is stored under the well-known name."""
        bundle = MTLSBundle(
            ca_cert="ca-crt", ca_key="ca-key",
            server_cert="tls-crt", server_key="tls-key",
            client_cert="client-crt", client_key="client-key",
        )

        secret = build_mtls_secret(instance, bundle)

        assert secret["metadata"]["name"] == "grpc-mtls"
        assert secret["metadata"]["namespace"] == "idp"
        assert base64.b64decode(secret["data"]["tls.crt"]).decode() == "tls-crt"
        assert base64.b64decode(secret["data"]["client.key"]).decode() == "client-key"
        assert len(secret["data"]) == 6


class TestServices:
    """Test cases for the service builders."""

    def test_web_service(self, instance):
        """Test the web service and its serving certificate annotation."""
        service = build_web_service(instance)

        assert service["metadata"]["name"] == "dex"
        assert service["metadata"]["annotations"] == {
            "service.beta.openshift.io/serving-cert-secret-name": "dex-tls-secret",
        }
        assert service["spec"]["ports"] == [{"port": 5556, "protocol": "TCP", "name": "http"}]
        assert service["spec"]["selector"] == {"app": "dex"}

    def test_grpc_service(self, instance):
        """Test the gRPC service."""
        service = build_grpc_service(instance)

        assert service["metadata"]["name"] == "grpc"
        assert "annotations" not in service["metadata"]
        assert service["spec"]["ports"][0]["port"] == 5557


class TestRBAC:
    """Test cases for the RBAC builders."""

    def test_service_account(self, instance):
        """Test the service account."""
        account = build_service_account(instance)
        assert account["metadata"] == {
            "name": "dex-operator-dexsso",
            "namespace": "idp",
            "labels": {"app": "dex"},
        }

    def test_cluster_role(self, instance):
        """Test the cluster role is cluster scoped and grants Dex storage access."""
        role = build_cluster_role(instance)

        assert "namespace" not in role["metadata"]
        assert role["rules"][0] == {
            "apiGroups": ["dex.coreos.com"],
            "resources": ["*"],
            "verbs": ["*"],
        }
        assert role["metadata"]["labels"]["auth.identitatem.io/owner-namespace"] == "idp"

    def test_cluster_role_binding(self, instance):
        """Test the binding ties the role to the namespaced service account."""
        binding = build_cluster_role_binding(instance)

        assert binding["metadata"]["name"] == "dex-operator-dexsso-idp"
        assert binding["roleRef"]["name"] == "dex-operator-dexsso"
        assert binding["subjects"] == [
            {"kind": "ServiceAccount", "name": "dex-operator-dexsso", "namespace": "idp"}
        ]


class TestDeployment:
    """Test cases for the deployment builder."""

    def test_get_dex_image(self, dex_image):
        """Test reading the image from the environment."""
        assert get_dex_image() == dex_image

    def test_get_dex_image_missing(self, monkeypatch):
        """Test that an unset image is a configuration error."""
        monkeypatch.delenv("RELATED_IMAGE_DEX", raising=False)
        with pytest.raises(MissingImageError, match="RELATED_IMAGE_DEX"):
            get_dex_image()

    def test_get_dex_image_blank(self, monkeypatch):
        """Test that a blank image is a configuration error."""
        monkeypatch.setenv("RELATED_IMAGE_DEX", "  ")
        with pytest.raises(MissingImageError):
            get_dex_image()

    def test_build_deployment_rejects_empty_image(self, instance):
        """Test that no deployment is built without an image."""
        with pytest.raises(MissingImageError):
            build_deployment(instance, "")

    def test_build_deployment(self, instance, dex_image):
        """Test the pod template."""
        deployment = build_deployment(instance, dex_image)

        assert deployment["spec"]["replicas"] == 1
        pod = deployment["spec"]["template"]["spec"]
        assert pod["serviceAccountName"] == "dex-operator-dexsso"

        container = pod["containers"][0]
        assert container["image"] == dex_image
        assert container["command"] == ["/usr/local/bin/dex", "serve", "/etc/dex/cfg/config.yaml"]
        assert {"name": "KUBERNETES_POD_NAMESPACE", "value": "idp"} in container["env"]
        assert [p["containerPort"] for p in container["ports"]] == [5556, 5557]

        secrets = {v["name"]: v["secret"]["secretName"] for v in pod["volumes"] if "secret" in v}
        assert secrets == {"tls": "dex-tls-secret", "mtls": "grpc-mtls"}

    def test_selector_matches_template(self, instance, dex_image):
        """Test that the selector matches the pod labels."""
        deployment = build_deployment(instance, dex_image)
        assert (
            deployment["spec"]["selector"]["matchLabels"]
            == deployment["spec"]["template"]["metadata"]["labels"]
        )


class TestRoute:
    """Test cases for the route builder."""

    def test_route(self, instance):
        """Test the route host and TLS policy."""
        route = build_route(instance)

        assert route["apiVersion"] == "route.openshift.io/v1"
        assert route["spec"]["host"] == "sso.example.com"
        assert route["spec"]["tls"] == {
            "termination": "reencrypt",
            "insecureEdgeTerminationPolicy": "Redirect",
        }
        assert route["spec"]["to"] == {"kind": "Service", "name": "dex"}
        assert route["spec"]["port"] == {"targetPort": "http"}

    @pytest.mark.parametrize(
        "issuer,host",
        [
            ("https://sso.example.com/", "sso.example.com"),
            ("https://sso.example.com:8443/dex", "sso.example.com"),
            ("http://Login.Example.com", "login.example.com"),
        ],
    )
    def test_issuer_host(self, issuer, host):
        """Test host extraction."""
        assert issuer_host(issuer) == host

    @pytest.mark.parametrize("issuer", ["not a url", "", "sso.example.com", "https://"])
    def test_invalid_issuer(self, issuer, meta):
        """Test that an issuer without a host fails the route."""
        instance = DexServerInstance.from_resource({"issuer": issuer}, meta)
        with pytest.raises(InvalidIssuerError):
            build_route(instance)
