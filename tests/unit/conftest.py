"""Shared fixtures for unit tests."""

from __future__ import annotations

import base64
import threading
from types import SimpleNamespace
from typing import Any

import pytest
from kubernetes import client

from dex_operator.constants import KIND_SECRET
from dex_operator.models import DexServerInstance
from dex_operator.services.kubernetes.client import ObjectRef


class FakeKube:
    """In-memory stand-in for KubernetesClient."""

    def __init__(self) -> None:
        self.objects: dict[ObjectRef, Any] = {}
        self.created: list[ObjectRef] = []

    def add_secret(self, name: str, namespace: str, data: dict[str, str]) -> None:
        encoded = {k: base64.b64encode(v.encode("utf-8")).decode("utf-8") for k, v in data.items()}
        self.objects[ObjectRef(KIND_SECRET, name, namespace)] = SimpleNamespace(data=encoded)

    def get(self, ref: ObjectRef, cancel: Any = None) -> Any:
        if ref not in self.objects:
            raise client.exceptions.ApiException(status=404, reason="Not Found")
        return self.objects[ref]

    def exists(self, ref: ObjectRef, cancel: Any = None) -> bool:
        return ref in self.objects

    def create(self, manifest: dict[str, Any], cancel: Any = None) -> bool:
        ref = ObjectRef.from_manifest(manifest)
        if ref in self.objects:
            return False
        self.objects[ref] = manifest
        self.created.append(ref)
        return True


class RacingKube(FakeKube):
    """FakeKube whose existence checks wait until ``parties`` callers have looked.

    Every caller therefore sees the state from before any of them created
    anything; creates are serialized so exactly one wins.
    """

    def __init__(self, parties: int) -> None:
        super().__init__()
        self._barrier = threading.Barrier(parties, timeout=10)
        self._lock = threading.Lock()

    def exists(self, ref: ObjectRef, cancel: Any = None) -> bool:
        found = ref in self.objects
        self._barrier.wait()
        return found

    def create(self, manifest: dict[str, Any], cancel: Any = None) -> bool:
        with self._lock:
            return super().create(manifest, cancel)


@pytest.fixture(autouse=True)
def small_keys(monkeypatch):
    """Keep certificate generation fast."""
    monkeypatch.setenv("MTLS_KEY_SIZE", "2048")


@pytest.fixture
def dex_image(monkeypatch):
    monkeypatch.setenv("RELATED_IMAGE_DEX", "quay.io/dexidp/dex:v2.37.0")
    return "quay.io/dexidp/dex:v2.37.0"


@pytest.fixture
def fake_kube():
    return FakeKube()


@pytest.fixture
def github_spec() -> dict[str, Any]:
    return {
        "issuer": "https://sso.example.com/",
        "connectors": [
            {
                "type": "github",
                "id": "gh",
                "name": "GitHub",
                "github": {
                    "clientID": "abc",
                    "clientSecretRef": {"name": "gh-secret", "key": "clientSecret"},
                    "redirectURI": "https://sso.example.com/callback",
                    "org": "example",
                },
            }
        ],
    }


@pytest.fixture
def ldap_spec() -> dict[str, Any]:
    return {
        "issuer": "https://sso.example.com/",
        "connectors": [
            {
                "type": "ldap",
                "id": "ldap",
                "name": "OpenLDAP",
                "ldap": {
                    "host": "ldap.example.com:636",
                    "insecureNoSSL": False,
                    "startTLS": True,
                    "bindDN": "cn=admin,dc=example,dc=com",
                    "bindPWRef": {"name": "ldap-secret"},
                    "userSearch": {
                        "baseDN": "ou=people,dc=example,dc=com",
                        "filter": "(objectClass=person)",
                        "username": "uid",
                        "idAttr": "uid",
                        "emailAttr": "mail",
                        "nameAttr": "cn",
                    },
                    "groupSearch": {"baseDN": ""},
                },
            }
        ],
    }


@pytest.fixture
def meta() -> dict[str, Any]:
    return {"name": "dex", "namespace": "idp", "uid": "1234-5678"}


@pytest.fixture
def instance(github_spec, meta) -> DexServerInstance:
    return DexServerInstance.from_resource(github_spec, meta)


@pytest.fixture
def racing_kube():
    return RacingKube(parties=2)
