"""Constants for the Dex Operator."""

# API Group
API_GROUP = "auth.identitatem.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_DEX_SERVER = "DexServer"
PLURAL_DEX_SERVER = "dexservers"

# Downstream object kinds
KIND_SECRET = "Secret"
KIND_CONFIG_MAP = "ConfigMap"
KIND_SERVICE = "Service"
KIND_SERVICE_ACCOUNT = "ServiceAccount"
KIND_CLUSTER_ROLE = "ClusterRole"
KIND_CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
KIND_DEPLOYMENT = "Deployment"
KIND_ROUTE = "Route"

# OpenShift routes
ROUTE_GROUP = "route.openshift.io"
ROUTE_VERSION = "v1"
ROUTE_PLURAL = "routes"

# Fixed object names (shared by every DexServer in the same namespace/cluster)
SECRET_MTLS_NAME = "grpc-mtls"
SECRET_WEB_TLS_SUFFIX = "-tls-secret"
SERVICE_ACCOUNT_NAME = "dex-operator-dexsso"
GRPC_SERVICE_NAME = "grpc"

# Environment
DEX_IMAGE_ENV_NAME = "RELATED_IMAGE_DEX"

# Ports
WEB_PORT = 5556
GRPC_PORT = 5557
WEB_PORT_NAME = "http"
GRPC_PORT_NAME = "grpc"

# Config document
CONFIG_KEY = "config.yaml"
CONFIG_MOUNT_PATH = "/etc/dex/cfg"
TLS_MOUNT_PATH = "/etc/dex/tls"
MTLS_MOUNT_PATH = "/etc/dex/mtls"
DEX_BINARY = "/usr/local/bin/dex"

# mTLS secret fields
SECRET_FIELD_CA_CERT = "ca.crt"
SECRET_FIELD_CA_KEY = "ca.key"
SECRET_FIELD_SERVER_CERT = "tls.crt"
SECRET_FIELD_SERVER_KEY = "tls.key"
SECRET_FIELD_CLIENT_CERT = "client.crt"
SECRET_FIELD_CLIENT_KEY = "client.key"

# Connector kinds
CONNECTOR_TYPE_GITHUB = "github"
CONNECTOR_TYPE_LDAP = "ldap"

# Default secret keys per connector kind
DEFAULT_GITHUB_SECRET_KEY = "clientSecret"
DEFAULT_LDAP_SECRET_KEY = "bindPW"

# Labels
LABEL_APP = "app"
LABEL_DEXCONFIG_NAME = "dexconfig_name"
LABEL_DEXCONFIG_NAMESPACE = "dexconfig_namespace"
LABEL_OWNER_NAME = f"{API_GROUP}/owner-name"
LABEL_OWNER_NAMESPACE = f"{API_GROUP}/owner-namespace"

# Annotations
ANNOTATION_SERVING_CERT_SECRET = "service.beta.openshift.io/serving-cert-secret-name"

# Field Manager
FIELD_MANAGER = "dex-operator"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_CONFIGURATION_INVALID = "ConfigurationInvalid"
EVENT_REASON_OBJECT_CREATED = "ObjectCreated"
EVENT_REASON_BOOTSTRAP_COMPLETE = "BootstrapComplete"
