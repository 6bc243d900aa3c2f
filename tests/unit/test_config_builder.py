"""Tests for the Dex configuration translator."""

from __future__ import annotations

import pytest
import yaml

from dex_operator.builders.config import (
    build_config_document,
    build_config_map,
    translate_config,
    translate_connector,
)
from dex_operator.models import DexServerInstance, SecretRef
from dex_operator.utils.errors import SecretNotFoundError, UnknownConnectorKindError


def _resolver(values):
    calls = []

    def resolve(ref: SecretRef) -> str:
        calls.append(ref)
        if ref.name not in values:
            raise SecretNotFoundError(f"Secret '{ref.name}' not found in namespace 'idp'")
        return values[ref.name]

    resolve.calls = calls
    return resolve


class TestTranslateConfig:
    """Test cases for translate_config."""

    def test_github_connector(self, instance):
        """Test that the GitHub client secret is inlined from its secret."""
        resolve = _resolver({"gh-secret": "xyz"})

        document = yaml.safe_load(translate_config(instance, resolve))

        assert document["issuer"] == "https://sso.example.com/"
        assert document["connectors"] == [
            {
                "type": "github",
                "id": "gh",
                "name": "GitHub",
                "config": {
                    "clientID": "abc",
                    "clientSecret": "xyz",
                    "redirectURI": "https://sso.example.com/callback",
                    "org": "example",
                },
            }
        ]
        assert resolve.calls == [SecretRef(name="gh-secret", key="clientSecret")]

    def test_fixed_sections(self, instance):
        """Test storage, web, grpc and oauth2 sections."""
        document = build_config_document(instance, _resolver({"gh-secret": "xyz"}))

        assert document["storage"] == {"type": "kubernetes", "config": {"inCluster": True}}
        assert document["web"]["https"] == "0.0.0.0:5556"
        assert document["grpc"] == {
            "addr": "0.0.0.0:5557",
            "tlsCert": "/etc/dex/mtls/tls.crt",
            "tlsKey": "/etc/dex/mtls/tls.key",
            "tlsClientCA": "/etc/dex/mtls/ca.crt",
            "reflection": True,
        }
        assert document["oauth2"] == {"skipApprovalScreen": True}

    def test_ldap_connector(self, ldap_spec, meta):
        """Test LDAP translation with user search and an empty group search."""
        instance = DexServerInstance.from_resource(ldap_spec, meta)

        document = build_config_document(instance, _resolver({"ldap-secret": "hunter2"}))

        config = document["connectors"][0]["config"]
        assert config["host"] == "ldap.example.com:636"
        assert config["bindDN"] == "cn=admin,dc=example,dc=com"
        assert config["bindPW"] == "hunter2"
        assert config["startTLS"] is True
        assert "insecureNoSSL" not in config
        assert config["userSearch"] == {
            "baseDN": "ou=people,dc=example,dc=com",
            "filter": "(objectClass=person)",
            "username": "uid",
            "idAttr": "uid",
            "emailAttr": "mail",
            "nameAttr": "cn",
        }
        assert "groupSearch" not in config

    def test_ldap_group_search_with_matchers(self, ldap_spec, meta):
        """Test that a group search with a base DN is emitted with its matchers."""
        ldap_spec["connectors"][0]["ldap"]["groupSearch"] = {
            "baseDN": "ou=groups,dc=example,dc=com",
            "filter": "(objectClass=groupOfNames)",
            "userMatchers": [{"userAttr": "DN", "groupAttr": "member"}],
            "nameAttr": "cn",
        }
        instance = DexServerInstance.from_resource(ldap_spec, meta)

        document = build_config_document(instance, _resolver({"ldap-secret": "pw"}))

        group_search = document["connectors"][0]["config"]["groupSearch"]
        assert group_search["baseDN"] == "ou=groups,dc=example,dc=com"
        assert group_search["userMatchers"] == [{"userAttr": "DN", "groupAttr": "member"}]

    def test_no_connectors(self, meta):
        """Test a configuration without connectors."""
        instance = DexServerInstance.from_resource({"issuer": "https://sso.example.com"}, meta)

        document = build_config_document(instance, _resolver({}))

        assert "connectors" not in document
        assert document["enablePasswordDB"] is True

    def test_deterministic(self, instance):
        """Test that identical inputs give byte-identical output."""
        first = translate_config(instance, _resolver({"gh-secret": "xyz"}))
        second = translate_config(instance, _resolver({"gh-secret": "xyz"}))

        assert first == second
        assert first.startswith("issuer: ")

    def test_one_failing_connector_fails_all(self, github_spec, ldap_spec, meta):
        """Test that a failing secret reference yields no partial document."""
        spec = dict(github_spec)
        spec["connectors"] = github_spec["connectors"] + ldap_spec["connectors"]
        instance = DexServerInstance.from_resource(spec, meta)

        with pytest.raises(SecretNotFoundError, match="ldap-secret"):
            translate_config(instance, _resolver({"gh-secret": "xyz"}))

    def test_unknown_connector_object(self):
        """Test that translate_connector rejects values it does not know."""
        with pytest.raises(UnknownConnectorKindError):
            translate_connector(object(), _resolver({}))


class TestBuildConfigMap:
    """Test cases for build_config_map."""

    def test_config_map(self, instance):
        """Test the ConfigMap shape."""
        config_map = build_config_map(instance, "issuer: x\n")

        assert config_map["kind"] == "ConfigMap"
        assert config_map["metadata"]["name"] == "dex"
        assert config_map["metadata"]["namespace"] == "idp"
        assert config_map["metadata"]["labels"] == {"app": "dex"}
        assert config_map["data"] == {"config.yaml": "issuer: x\n"}
