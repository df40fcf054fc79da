"""
Settings for the Drycc gateway controller.

Every value can be overridden from the environment.
"""
import os
import json

DEBUG = os.environ.get('DRYCC_DEBUG', 'false').lower() == "true"
LOG_LEVEL = os.environ.get('DRYCC_LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO').upper()

# the controllerName a GatewayClass must carry to be handled here
CONTROLLER_NAME = os.environ.get(
    'DRYCC_GATEWAY_CONTROLLER_NAME', 'drycc.cc/gateway-controller')
PROVIDER_NAME = 'kubernetesgateway'

# kubernetes api settings
K8S_API_URL = os.environ.get('DRYCC_GATEWAY_K8S_API_URL', "https://{}:{}".format(
    os.environ.get('KUBERNETES_SERVICE_HOST', 'kubernetes.default'),
    os.environ.get('KUBERNETES_SERVICE_PORT', '443'),
))
K8S_API_VERIFY_TLS = os.environ.get('K8S_API_VERIFY_TLS', 'true').lower() == "true"
K8S_API_TOKEN = os.environ.get('DRYCC_GATEWAY_K8S_API_TOKEN', None)

# an empty list watches all namespaces
WATCH_NAMESPACES = [
    namespace.strip()
    for namespace in os.environ.get('DRYCC_GATEWAY_NAMESPACES', '').split(',')
    if namespace.strip()
]
# label selector applied when watching GatewayClasses
LABEL_SELECTOR = os.environ.get('DRYCC_GATEWAY_LABEL_SELECTOR', '')

# seconds, 0 disables throttling
THROTTLE_DURATION = float(os.environ.get('DRYCC_GATEWAY_THROTTLE_DURATION', '0'))
EXPERIMENTAL_CHANNEL = os.environ.get(
    'DRYCC_GATEWAY_EXPERIMENTAL_CHANNEL', 'false').lower() == "true"
NATIVE_LB_BY_DEFAULT = os.environ.get(
    'DRYCC_GATEWAY_NATIVE_LB_BY_DEFAULT', 'false').lower() == "true"

# entry points of the proxy, name -> {"address": ":port", "http_tls": bool}
ENTRYPOINTS = json.loads(os.environ.get('DRYCC_GATEWAY_ENTRYPOINTS', json.dumps({
    "web": {"address": ":8000"},
    "websecure": {"address": ":8443", "http_tls": True},
})))

# address published on Gateway status, at most one of ip, hostname or service
STATUS_ADDRESS = {
    "ip": os.environ.get('DRYCC_GATEWAY_STATUS_IP', ''),
    "hostname": os.environ.get('DRYCC_GATEWAY_STATUS_HOSTNAME', ''),
    "service": {
        "name": os.environ.get('DRYCC_GATEWAY_STATUS_SERVICE_NAME', ''),
        "namespace": os.environ.get('DRYCC_GATEWAY_STATUS_SERVICE_NAMESPACE', ''),
    },
}

# seconds
STATUS_UPDATE_TIMEOUT = int(os.environ.get('DRYCC_GATEWAY_STATUS_UPDATE_TIMEOUT', '5'))
WATCH_TIMEOUT = int(os.environ.get('DRYCC_GATEWAY_WATCH_TIMEOUT', '300'))
SYNC_TIMEOUT = int(os.environ.get('DRYCC_GATEWAY_SYNC_TIMEOUT', '60'))
EVENT_QUEUE_SIZE = int(os.environ.get('DRYCC_GATEWAY_EVENT_QUEUE_SIZE', '1'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'root': {'level': 'DEBUG' if DEBUG else 'WARN'},
    'formatters': {
        'verbose': {
            'format': '%(levelname)s %(asctime)s %(module)s %(process)d %(thread)d %(message)s'
        },
        'simple': {
            'format': '%(levelname)s %(message)s'
        },
    },
    'handlers': {
        'null': {
            'level': 'DEBUG',
            'class': 'logging.NullHandler',
        },
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose' if DEBUG else 'simple'
        }
    },
    'loggers': {
        'gateway': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'kubeclient': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'urllib3': {
            'handlers': ['null'],
            'propagate': False,
        },
    }
}
