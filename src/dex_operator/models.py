"""Models for DexServer resources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .constants import (
    API_GROUP_VERSION,
    CONNECTOR_TYPE_GITHUB,
    CONNECTOR_TYPE_LDAP,
    DEFAULT_GITHUB_SECRET_KEY,
    DEFAULT_LDAP_SECRET_KEY,
    KIND_DEX_SERVER,
)
from .utils.errors import ConfigurationError, UnknownConnectorKindError


@dataclass(frozen=True)
class SecretRef:
    """Pointer to a single field of a Kubernetes secret."""

    name: str
    key: str
    namespace: str | None = None

    @classmethod
    def from_spec(cls, spec: dict[str, Any] | None, default_key: str, owner: str) -> SecretRef:
        """Parse a secret reference, falling back to the connector's default key."""
        spec = spec or {}
        name = spec.get("name")
        if not name:
            raise ConfigurationError(f"connector '{owner}' has a secret reference without a name")
        return cls(
            name=name,
            key=spec.get("key") or default_key,
            namespace=spec.get("namespace") or None,
        )


@dataclass(frozen=True)
class Org:
    """GitHub organization constraint."""

    name: str
    teams: tuple[str, ...] = ()


@dataclass(frozen=True)
class GitHubConnector:
    """GitHub OAuth connector declaration."""

    id: str
    name: str
    client_id: str
    client_secret_ref: SecretRef
    redirect_uri: str = ""
    org: str = ""
    orgs: tuple[Org, ...] = ()
    host_name: str = ""
    team_name_field: str = ""
    load_all_groups: bool = False
    use_login_as_id: bool = False
    root_ca: str = ""

    @property
    def type(self) -> str:
        return CONNECTOR_TYPE_GITHUB

    @classmethod
    def from_spec(cls, connector_id: str, name: str, spec: dict[str, Any]) -> GitHubConnector:
        orgs = tuple(
            Org(name=org.get("name", ""), teams=tuple(org.get("teams") or ()))
            for org in spec.get("orgs") or []
        )
        return cls(
            id=connector_id,
            name=name,
            client_id=spec.get("clientID", ""),
            client_secret_ref=SecretRef.from_spec(
                spec.get("clientSecretRef"), DEFAULT_GITHUB_SECRET_KEY, connector_id
            ),
            redirect_uri=spec.get("redirectURI", ""),
            org=spec.get("org", ""),
            orgs=orgs,
            host_name=spec.get("hostName", ""),
            team_name_field=spec.get("teamNameField", ""),
            load_all_groups=bool(spec.get("loadAllGroups", False)),
            use_login_as_id=bool(spec.get("useLoginAsID", False)),
            root_ca=spec.get("rootCA", ""),
        )


@dataclass(frozen=True)
class UserSearch:
    base_dn: str = ""
    filter: str = ""
    username: str = ""
    scope: str = ""
    id_attr: str = ""
    email_attr: str = ""
    name_attr: str = ""

    @classmethod
    def from_spec(cls, spec: dict[str, Any] | None) -> UserSearch:
        spec = spec or {}
        return cls(
            base_dn=spec.get("baseDN", ""),
            filter=spec.get("filter", ""),
            username=spec.get("username", ""),
            scope=spec.get("scope", ""),
            id_attr=spec.get("idAttr", ""),
            email_attr=spec.get("emailAttr", ""),
            name_attr=spec.get("nameAttr", ""),
        )


@dataclass(frozen=True)
class UserMatcher:
    user_attr: str
    group_attr: str


@dataclass(frozen=True)
class GroupSearch:
    base_dn: str = ""
    filter: str = ""
    scope: str = ""
    user_matchers: tuple[UserMatcher, ...] = ()
    name_attr: str = ""

    @classmethod
    def from_spec(cls, spec: dict[str, Any] | None) -> GroupSearch:
        spec = spec or {}
        return cls(
            base_dn=spec.get("baseDN", ""),
            filter=spec.get("filter", ""),
            scope=spec.get("scope", ""),
            user_matchers=tuple(
                UserMatcher(user_attr=m.get("userAttr", ""), group_attr=m.get("groupAttr", ""))
                for m in spec.get("userMatchers") or []
            ),
            name_attr=spec.get("nameAttr", ""),
        )


@dataclass(frozen=True)
class LDAPConnector:
    """LDAP connector declaration."""

    id: str
    name: str
    host: str
    bind_pw_ref: SecretRef
    insecure_no_ssl: bool = False
    insecure_skip_verify: bool = False
    start_tls: bool = False
    root_ca: str = ""
    root_ca_data: str = ""
    bind_dn: str = ""
    username_prompt: str = ""
    user_search: UserSearch = field(default_factory=UserSearch)
    group_search: GroupSearch = field(default_factory=GroupSearch)

    @property
    def type(self) -> str:
        return CONNECTOR_TYPE_LDAP

    @classmethod
    def from_spec(cls, connector_id: str, name: str, spec: dict[str, Any]) -> LDAPConnector:
        return cls(
            id=connector_id,
            name=name,
            host=spec.get("host", ""),
            bind_pw_ref=SecretRef.from_spec(spec.get("bindPWRef"), DEFAULT_LDAP_SECRET_KEY, connector_id),
            insecure_no_ssl=bool(spec.get("insecureNoSSL", False)),
            insecure_skip_verify=bool(spec.get("insecureSkipVerify", False)),
            start_tls=bool(spec.get("startTLS", False)),
            root_ca=spec.get("rootCA", ""),
            root_ca_data=spec.get("rootCAData", ""),
            bind_dn=spec.get("bindDN", ""),
            username_prompt=spec.get("usernamePrompt", ""),
            user_search=UserSearch.from_spec(spec.get("userSearch")),
            group_search=GroupSearch.from_spec(spec.get("groupSearch")),
        )


Connector = Union[GitHubConnector, LDAPConnector]


def parse_connector(spec: dict[str, Any]) -> Connector:
    """Parse one connector declaration from the DexServer spec.

    Raises:
        UnknownConnectorKindError: If the connector type is not supported
    """
    connector_type = spec.get("type", "")
    connector_id = spec.get("id", "")
    name = spec.get("name", "")

    if connector_type == CONNECTOR_TYPE_GITHUB:
        return GitHubConnector.from_spec(connector_id, name, spec.get("github") or {})
    if connector_type == CONNECTOR_TYPE_LDAP:
        return LDAPConnector.from_spec(connector_id, name, spec.get("ldap") or {})
    raise UnknownConnectorKindError(
        f"connector '{connector_id}' has unknown type '{connector_type}'"
    )


@dataclass(frozen=True)
class DexServerInstance:
    """Immutable view of one DexServer for a single reconcile pass.

    Connector declarations are kept as written and only parsed when the
    configuration is translated, so a bad connector fails the config step
    alone.
    """

    name: str
    namespace: str
    uid: str
    issuer: str
    connector_specs: tuple[dict[str, Any], ...] = ()
    api_version: str = API_GROUP_VERSION
    kind: str = KIND_DEX_SERVER

    @classmethod
    def from_resource(cls, spec: dict[str, Any], meta: dict[str, Any]) -> DexServerInstance:
        """Build an instance from a DexServer's spec and metadata."""
        return cls(
            name=meta["name"],
            namespace=meta["namespace"],
            uid=meta.get("uid", ""),
            issuer=spec.get("issuer", ""),
            connector_specs=tuple(dict(c) for c in spec.get("connectors") or []),
        )

    @property
    def connectors(self) -> tuple[Connector, ...]:
        """Parsed connector declarations.

        Raises:
            ConfigurationError: If any declaration is invalid
        """
        return tuple(parse_connector(c) for c in self.connector_specs)

    def owner_body(self) -> dict[str, Any]:
        """Minimal body accepted by kopf's owner reference helpers."""
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "uid": self.uid,
            },
        }
