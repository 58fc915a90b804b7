"""Fixed names, labels and defaults shared across hedera-solo."""

__all__: list[str] = []

SOLO_DEPLOYMENT_CHART = "solo-deployment"
SOLO_CHART_REPO = "oci://ghcr.io/hashgraph/solo-charts"
SOLO_DEPLOYMENT_CHART_PATH = f"{SOLO_CHART_REPO}/{SOLO_DEPLOYMENT_CHART}"
HEDERA_EXPLORER_RELEASE_NAME = "hedera-explorer"
HEDERA_EXPLORER_CHART_PATH = f"{SOLO_CHART_REPO}/hedera-explorer"
HEDERA_EXPLORER_COMPONENT_NAME = "mirrorNodeExplorer"

# Remote config storage
REMOTE_CONFIG_NAME = "solo-remote-config"
REMOTE_CONFIG_DATA_KEY = "remote-config-data"
REMOTE_CONFIG_LABEL_KEY = "solo.hedera.com/type"
REMOTE_CONFIG_LABEL_VALUE = "remote-config"
REMOTE_CONFIG_LABELS = {REMOTE_CONFIG_LABEL_KEY: REMOTE_CONFIG_LABEL_VALUE}
REMOTE_CONFIG_LABEL_SELECTOR = f"{REMOTE_CONFIG_LABEL_KEY}={REMOTE_CONFIG_LABEL_VALUE}"
REMOTE_CONFIG_VERSION = "1.0.0"
REMOTE_CONFIG_MAX_COMMAND_HISTORY = 50

# Leases
DEFAULT_LEASE_DURATION = 20
DEFAULT_LEASE_ACQUIRE_ATTEMPTS = 10
LEASE_READ_RETRIES = 4
LEASE_READ_RETRY_DELAY = 5.0

# Readiness
POD_PHASE_RUNNING = "Running"
POD_CONDITION_READY = "Ready"
POD_CONDITION_STATUS_TRUE = "True"
PODS_RUNNING_MAX_ATTEMPTS = 900
PODS_RUNNING_DELAY = 1.0
PODS_READY_MAX_ATTEMPTS = 300
PODS_READY_DELAY = 1.0
NETWORK_DESTROY_WAIT_TIMEOUT = 120.0
HELM_TIMEOUT = 600.0

# Pod label selectors for deployed components
NODE_POD_LABEL_TEMPLATE = "solo.hedera.com/node-name={alias}"
NODE_POD_TYPE_LABEL = "solo.hedera.com/type=network-node"
PROXY_LABEL_TEMPLATE = "app={name}"
ENVOY_PROXY_NAME_TEMPLATE = "envoy-proxy-{alias}"
HAPROXY_NAME_TEMPLATE = "haproxy-{alias}"
RELAY_LABEL = "app=hedera-json-rpc-relay"
MIRROR_NODE_LABEL = "app.kubernetes.io/name=importer"
EXPLORER_LABEL = "app.kubernetes.io/component=hedera-explorer"
