"""Translation of a DexServer into Dex's config.yaml and its ConfigMap."""

from __future__ import annotations

from typing import Any, Callable

import yaml

from ..constants import (
    CONFIG_KEY,
    GRPC_PORT,
    KIND_CONFIG_MAP,
    MTLS_MOUNT_PATH,
    SECRET_FIELD_CA_CERT,
    SECRET_FIELD_SERVER_CERT,
    SECRET_FIELD_SERVER_KEY,
    TLS_MOUNT_PATH,
    WEB_PORT,
)
from ..models import (
    Connector,
    DexServerInstance,
    GitHubConnector,
    GroupSearch,
    LDAPConnector,
    SecretRef,
    UserSearch,
)
from ..utils.errors import UnknownConnectorKindError
from .labels import app_labels

# Resolves a connector secret reference to its value; raises on failure.
SecretResolver = Callable[[SecretRef], str]


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop empty values, matching the omitempty shape Dex documents."""
    return {k: v for k, v in values.items() if v not in ("", None, False, [], {})}


def _user_search_section(search: UserSearch) -> dict[str, Any]:
    return _compact(
        {
            "baseDN": search.base_dn,
            "filter": search.filter,
            "username": search.username,
            "scope": search.scope,
            "idAttr": search.id_attr,
            "emailAttr": search.email_attr,
            "nameAttr": search.name_attr,
        }
    )


def _group_search_section(search: GroupSearch) -> dict[str, Any]:
    return _compact(
        {
            "baseDN": search.base_dn,
            "filter": search.filter,
            "scope": search.scope,
            "userMatchers": [
                _compact({"userAttr": m.user_attr, "groupAttr": m.group_attr})
                for m in search.user_matchers
            ],
            "nameAttr": search.name_attr,
        }
    )


def _github_config(connector: GitHubConnector, resolve: SecretResolver) -> dict[str, Any]:
    client_secret = resolve(connector.client_secret_ref)
    return _compact(
        {
            "clientID": connector.client_id,
            "clientSecret": client_secret,
            "redirectURI": connector.redirect_uri,
            "org": connector.org,
            "orgs": [
                _compact({"name": org.name, "teams": list(org.teams)}) for org in connector.orgs
            ],
            "hostName": connector.host_name,
            "rootCA": connector.root_ca,
            "teamNameField": connector.team_name_field,
            "loadAllGroups": connector.load_all_groups,
            "useLoginAsID": connector.use_login_as_id,
        }
    )


def _ldap_config(connector: LDAPConnector, resolve: SecretResolver) -> dict[str, Any]:
    bind_pw = resolve(connector.bind_pw_ref)
    section = _compact(
        {
            "host": connector.host,
            "insecureNoSSL": connector.insecure_no_ssl,
            "insecureSkipVerify": connector.insecure_skip_verify,
            "startTLS": connector.start_tls,
            "rootCA": connector.root_ca,
            "rootCAData": connector.root_ca_data,
            "bindDN": connector.bind_dn,
            "bindPW": bind_pw,
            "usernamePrompt": connector.username_prompt,
        }
    )
    if connector.user_search.base_dn:
        section["userSearch"] = _user_search_section(connector.user_search)
    if connector.group_search.base_dn:
        section["groupSearch"] = _group_search_section(connector.group_search)
    return section


def translate_connector(connector: Connector, resolve: SecretResolver) -> dict[str, Any]:
    """Translate one connector declaration into a Dex connector entry.

    Raises:
        UnknownConnectorKindError: If the connector is not a known variant
        ConfigurationError: If its secret reference cannot be resolved
    """
    match connector:
        case GitHubConnector():
            config = _github_config(connector, resolve)
        case LDAPConnector():
            config = _ldap_config(connector, resolve)
        case _:
            raise UnknownConnectorKindError(
                f"cannot translate connector of type {type(connector).__name__}"
            )
    return {
        "type": connector.type,
        "id": connector.id,
        "name": connector.name,
        "config": config,
    }


def build_config_document(instance: DexServerInstance, resolve: SecretResolver) -> dict[str, Any]:
    """Build the Dex configuration as a dict.

    Every connector is translated before anything is returned: one failing
    secret reference fails the whole document.
    """
    connectors = [translate_connector(c, resolve) for c in instance.connectors]

    document: dict[str, Any] = {
        "issuer": instance.issuer,
        "storage": {
            "type": "kubernetes",
            "config": {"inCluster": True},
        },
        "web": {
            "https": f"0.0.0.0:{WEB_PORT}",
            "tlsCert": f"{TLS_MOUNT_PATH}/tls.crt",
            "tlsKey": f"{TLS_MOUNT_PATH}/tls.key",
        },
        "grpc": {
            "addr": f"0.0.0.0:{GRPC_PORT}",
            "tlsCert": f"{MTLS_MOUNT_PATH}/{SECRET_FIELD_SERVER_CERT}",
            "tlsKey": f"{MTLS_MOUNT_PATH}/{SECRET_FIELD_SERVER_KEY}",
            "tlsClientCA": f"{MTLS_MOUNT_PATH}/{SECRET_FIELD_CA_CERT}",
            "reflection": True,
        },
    }
    if connectors:
        document["connectors"] = connectors
    document["oauth2"] = {"skipApprovalScreen": True}
    document["enablePasswordDB"] = True
    return document


def translate_config(instance: DexServerInstance, resolve: SecretResolver) -> str:
    """Serialize the Dex configuration for a DexServer.

    Args:
        instance: DexServer being reconciled
        resolve: Secret resolver bound to the DexServer's namespace

    Returns:
        YAML document; identical inputs give byte-identical output

    Raises:
        ConfigurationError: If a connector is invalid or its secret cannot be resolved
    """
    return yaml.safe_dump(
        build_config_document(instance, resolve),
        default_flow_style=False,
        sort_keys=False,
    )


def build_config_map(instance: DexServerInstance, config_yaml: str) -> dict[str, Any]:
    """Build the ConfigMap holding config.yaml."""
    return {
        "apiVersion": "v1",
        "kind": KIND_CONFIG_MAP,
        "metadata": {
            "name": instance.name,
            "namespace": instance.namespace,
            "labels": app_labels(instance),
        },
        "data": {CONFIG_KEY: config_yaml},
    }
