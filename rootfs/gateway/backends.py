"""
Resolution of route backendRefs into network targets.
"""
import collections
import logging

from gateway.exceptions import BackendNotFound, GatewayError, UnsupportedProtocol
from gateway.grants import GROUP_CORE, normalize_group

logger = logging.getLogger(__name__)


KIND_SERVICE = "Service"
NATIVE_LB_ANNOTATION = "drycc.cc/service.nativelb"
# names carrying a provider qualifier, such as api@internal, are resolved elsewhere
PROVIDER_SEPARATOR = "@"
INTERNAL_SUFFIX = "@internal"

APP_PROTOCOL_SCHEMES = {
    "kubernetes.io/h2c": "h2c",
    "kubernetes.io/ws": "http",
    "kubernetes.io/wss": "https",
    "http": "http",
    "https": "https",
}

BackendAddress = collections.namedtuple('BackendAddress', ['ip', 'port'])


def backend_group(ref):
    return normalize_group(ref.get("group"))


def backend_kind(ref):
    return ref.get("kind") or KIND_SERVICE


def backend_namespace(ref, route_namespace):
    return ref.get("namespace") or route_namespace


def backend_weight(ref):
    weight = ref.get("weight")
    return 1 if weight is None else weight


def is_core_service(ref):
    return backend_group(ref) == GROUP_CORE and backend_kind(ref) == KIND_SERVICE


def is_internal_service(ref):
    return not is_core_service(ref) and ref.get("name", "").endswith(INTERNAL_SUFFIX)


class BackendResolver(object):

    def __init__(self, store, grants, registry, native_lb_by_default=False):
        self.store = store
        self.grants = grants
        self.registry = registry
        self.native_lb_by_default = native_lb_by_default

    def check_reference(self, route_kind, route_namespace, ref):
        self.grants.check(
            route_kind, route_namespace, backend_group(ref), backend_kind(ref),
            ref.get("name"), backend_namespace(ref, route_namespace))

    def resolve_extension(self, ref, namespace):
        """
        Resolve a backendRef outside the core group, returns (name, service).
        """
        name = ref["name"]
        if PROVIDER_SEPARATOR in name:
            return name, None
        builder = self.registry.backend_builder(backend_group(ref), backend_kind(ref))
        try:
            return builder(name, namespace)
        except GatewayError:
            raise
        except Exception as e:
            logger.error("building the %s/%s backend %s failed: %s",
                         backend_group(ref), backend_kind(ref), name, e)
            raise BackendNotFound("Cannot build backend {}: {}".format(name, e))

    def native_lb(self, service):
        annotations = service.get("metadata", {}).get("annotations") or {}
        value = annotations.get(NATIVE_LB_ANNOTATION)
        if value is None:
            return self.native_lb_by_default
        return value.strip().lower() in ("true", "1", "yes")

    def get_service_port(self, namespace, ref, protocol="TCP"):
        name, port = ref.get("name"), ref.get("port")
        if port is None:
            raise UnsupportedProtocol(
                "A port is required for the Service {}/{} backend".format(namespace, name))
        service = self.store.get_service(namespace, name)
        if service is None:
            raise BackendNotFound("Service {}/{} not found".format(namespace, name))
        for service_port in service.get("spec", {}).get("ports") or []:
            if service_port.get("port") != port:
                continue
            if service_port.get("protocol", "TCP") != protocol:
                raise UnsupportedProtocol(
                    "Service port {} of {}/{} does not use the {} protocol".format(
                        port, namespace, name, protocol))
            return service, service_port
        raise BackendNotFound("Service port {} not found in {}/{}".format(port, namespace, name))

    def get_addresses(self, namespace, ref, protocol="TCP"):
        """
        Return the matched Service port and the ready addresses behind it.
        """
        name = ref.get("name")
        service, service_port = self.get_service_port(namespace, ref, protocol)
        if self.native_lb(service):
            cluster_ip = service.get("spec", {}).get("clusterIP")
            if not cluster_ip or cluster_ip == "None":
                raise BackendNotFound(
                    "No cluster IP found for the Service {}/{}".format(namespace, name))
            return service_port, [BackendAddress(cluster_ip, service_port["port"])]

        endpoints = self.store.get_endpoints(namespace, name)
        if endpoints is None:
            raise BackendNotFound("Endpoints {}/{} not found".format(namespace, name))
        port_name = service_port.get("name") or ""
        addresses = []
        for subset in endpoints.get("subsets") or []:
            port = None
            for endpoint_port in subset.get("ports") or []:
                if (endpoint_port.get("name") or "") == port_name:
                    port = endpoint_port.get("port")
                    break
            if port is None:
                continue
            for address in subset.get("addresses") or []:
                backend_address = BackendAddress(address["ip"], port)
                if backend_address not in addresses:
                    addresses.append(backend_address)
        return service_port, addresses

    @staticmethod
    def http_scheme(service_port):
        app_protocol = service_port.get("appProtocol")
        if app_protocol:
            scheme = APP_PROTOCOL_SCHEMES.get(app_protocol)
            if scheme is None:
                raise UnsupportedProtocol("Unsupported appProtocol {}".format(app_protocol))
            return scheme
        if service_port.get("port") == 443 or (service_port.get("name") or "").startswith("https"):
            return "https"
        return "http"

    @staticmethod
    def grpc_scheme(service_port):
        app_protocol = service_port.get("appProtocol")
        if not app_protocol or app_protocol == "kubernetes.io/h2c":
            return "h2c"
        if app_protocol == "https":
            return "https"
        raise UnsupportedProtocol(
            "Unsupported appProtocol {} for a GRPC backend".format(app_protocol))
