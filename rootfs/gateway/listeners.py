"""
Validation of Gateway listeners and their binding to proxy entry points.
"""
import logging

from kubeclient.resources import Secret

from gateway import conditions
from gateway.exceptions import ReferenceNotPermitted, ValidationError
from gateway.grants import GROUP_CORE, GROUP_GATEWAY, normalize_group
from gateway.schemas import LISTENER_SCHEMA
from gateway.selectors import match_labels, parse_selector
from gateway.utils import to_ascii_hostname, validate_json

logger = logging.getLogger(__name__)

PROTOCOL_HTTP = "HTTP"
PROTOCOL_HTTPS = "HTTPS"
PROTOCOL_TCP = "TCP"
PROTOCOL_TLS = "TLS"
PROTOCOL_UDP = "UDP"

TLS_MODE_TERMINATE = "Terminate"
TLS_MODE_PASSTHROUGH = "Passthrough"

KIND_GATEWAY = "Gateway"
KIND_SECRET = "Secret"
KIND_HTTP_ROUTE = "HTTPRoute"
KIND_GRPC_ROUTE = "GRPCRoute"
KIND_TCP_ROUTE = "TCPRoute"
KIND_TLS_ROUTE = "TLSRoute"
KIND_UDP_ROUTE = "UDPRoute"

# allows routes from every namespace
NAMESPACE_ALL = ""

ROUTE_KINDS_BY_PROTOCOL = {
    PROTOCOL_HTTP: (KIND_HTTP_ROUTE, KIND_GRPC_ROUTE),
    PROTOCOL_HTTPS: (KIND_HTTP_ROUTE, KIND_GRPC_ROUTE),
    PROTOCOL_TCP: (KIND_TCP_ROUTE, ),
    PROTOCOL_TLS: (KIND_TCP_ROUTE, KIND_TLS_ROUTE),
    PROTOCOL_UDP: (KIND_UDP_ROUTE, ),
}
EXPERIMENTAL_PROTOCOLS = (PROTOCOL_TCP, PROTOCOL_TLS, PROTOCOL_UDP)


class ResolvedListener(object):
    """One listener of a Gateway as seen by the routes during a pass."""

    def __init__(self, gateway, listener):
        metadata = gateway.get("metadata", {})
        self.gateway_name = metadata.get("name")
        self.gateway_namespace = metadata.get("namespace")
        self.generation = metadata.get("generation", 0)
        self.name = listener.get("name")
        self.port = listener.get("port")
        self.protocol = listener.get("protocol")
        self.hostname = listener.get("hostname") or None
        self.tls = listener.get("tls")
        self.attached = False
        self.entry_point = None
        self.allowed_namespaces = []
        self.allowed_kinds = []
        self.conditions = []
        self.attached_routes = 0

    def __repr__(self):
        return "<ResolvedListener {}/{} {}>".format(
            self.gateway_namespace, self.gateway_name, self.name)

    @property
    def tls_mode(self):
        if self.tls is None:
            return None
        return self.tls.get("mode") or TLS_MODE_TERMINATE

    def add_condition(self, type, status, reason, message):
        self.conditions.append(conditions.new_condition(
            type, status, reason, message, self.generation))

    def status(self):
        return {
            "name": self.name,
            "supportedKinds": [
                {"group": GROUP_GATEWAY, "kind": kind} for kind in self.allowed_kinds
            ],
            "attachedRoutes": self.attached_routes,
            "conditions": list(self.conditions),
        }


class ListenerResolver(object):

    def __init__(self, store, grants, entry_points, experimental_channel=False):
        self.store = store
        self.grants = grants
        self.entry_points = entry_points or {}
        self.experimental_channel = experimental_channel

    def resolve(self, gateway):
        """
        Resolve every listener of gateway, in declaration order.

        Returns the listeners and the certificates they loaded, keyed by
        secret namespace/name.
        """
        listeners, certificates, keys = [], {}, set()
        for spec in gateway.get("spec", {}).get("listeners") or []:
            listener = ResolvedListener(gateway, spec)
            listeners.append(listener)
            self.resolve_listener(gateway, listener, spec, keys, certificates)
        return listeners, certificates

    def resolve_listener(self, gateway, listener, spec, keys, certificates):
        try:
            validate_json(spec, LISTENER_SCHEMA)
            listener.hostname = to_ascii_hostname(listener.hostname)
        except ValidationError as e:
            listener.add_condition(
                conditions.ACCEPTED, conditions.FALSE, conditions.REASON_INVALID, e.message)
            return

        listener.entry_point = self.entry_point_name(listener.port, listener.protocol)
        if listener.entry_point is None:
            listener.add_condition(
                conditions.ACCEPTED, conditions.FALSE, conditions.REASON_PORT_UNAVAILABLE,
                "Cannot find entryPoint for Gateway: no matching entryPoint for port {} "
                "and protocol {}".format(listener.port, listener.protocol))
            return

        try:
            listener.allowed_namespaces = self.allowed_namespaces(gateway, spec)
        except ValidationError as e:
            listener.add_condition(
                conditions.RESOLVED_REFS, conditions.FALSE,
                conditions.REASON_INVALID_ROUTE_NAMESPACES_SELECTOR,
                "Invalid route namespaces selector: {}".format(e.message))
            return

        supported_kinds = self.supported_route_kinds(listener)
        if supported_kinds is None:
            return
        listener.allowed_kinds = self.allowed_route_kinds(listener, spec, supported_kinds)

        key = "{}|{}|{}".format(listener.protocol, listener.hostname or "", listener.port)
        if key in keys:
            listener.add_condition(
                conditions.CONFLICTED, conditions.TRUE, conditions.REASON_DUPLICATE_LISTENER,
                "A listener with the same protocol, hostname and port already exists")
            return
        keys.add(key)

        if listener.protocol in (PROTOCOL_HTTP, PROTOCOL_TCP, PROTOCOL_UDP):
            if listener.tls is not None:
                listener.add_condition(
                    conditions.ACCEPTED, conditions.FALSE,
                    conditions.REASON_INVALID_TLS_CONFIGURATION,
                    "TLS configuration must not be defined when using {} protocol".format(
                        listener.protocol))
                return
        elif not self.resolve_tls(gateway, listener, certificates):
            return

        listener.attached = True

    def entry_point_name(self, port, protocol):
        suffix = ":{}".format(port)
        for name in sorted(self.entry_points):
            entry_point = self.entry_points[name]
            if not entry_point.get("address", "").endswith(suffix):
                continue
            # HTTP traffic cannot be served by a TLS only entry point
            if protocol == PROTOCOL_HTTP and entry_point.get("http_tls"):
                continue
            return name
        return None

    def allowed_namespaces(self, gateway, spec):
        namespaces = (spec.get("allowedRoutes") or {}).get("namespaces") or {}
        source = namespaces.get("from") or "Same"
        if source == "All":
            return [NAMESPACE_ALL]
        if source == "Same":
            return [gateway["metadata"]["namespace"]]
        selector = namespaces.get("selector")
        if selector is None:
            raise ValidationError("a selector is required when namespaces are taken from Selector")
        requirements = parse_selector(selector)
        return [
            namespace["metadata"]["name"] for namespace in self.store.list_namespaces()
            if match_labels(requirements, namespace["metadata"].get("labels"))
        ]

    def supported_route_kinds(self, listener):
        kinds = ROUTE_KINDS_BY_PROTOCOL.get(listener.protocol)
        if kinds is None:
            listener.add_condition(
                conditions.ACCEPTED, conditions.FALSE, conditions.REASON_UNSUPPORTED_PROTOCOL,
                "Unsupported listener protocol {}".format(listener.protocol))
            return None
        if listener.protocol in EXPERIMENTAL_PROTOCOLS and not self.experimental_channel:
            listener.add_condition(
                conditions.CONFLICTED, conditions.FALSE, conditions.REASON_INVALID_ROUTE_KINDS,
                "Protocol {} requires the experimental channel support to be enabled".format(
                    listener.protocol))
            return None
        return list(kinds)

    def allowed_route_kinds(self, listener, spec, supported_kinds):
        kinds = (spec.get("allowedRoutes") or {}).get("kinds")
        if not kinds:
            return supported_kinds

        allowed, unsupported = [], []
        for kind in kinds:
            group = kind.get("group", GROUP_GATEWAY)
            if group != GROUP_GATEWAY or kind["kind"] not in supported_kinds:
                unsupported.append("{}/{}".format(group, kind["kind"]))
                continue
            if kind["kind"] not in allowed:
                allowed.append(kind["kind"])
        if unsupported:
            listener.add_condition(
                conditions.RESOLVED_REFS, conditions.FALSE, conditions.REASON_INVALID_ROUTE_KINDS,
                "Listener protocol {} does not support route kinds {}".format(
                    listener.protocol, ", ".join(unsupported)))
        return allowed

    def certificate_error(self, listener, reason, message):
        listener.add_condition(conditions.RESOLVED_REFS, conditions.FALSE, reason, message)
        listener.add_condition(
            conditions.PROGRAMMED, conditions.FALSE, conditions.REASON_INVALID, message)
        return False

    def resolve_tls(self, gateway, listener, certificates):
        if listener.tls is None:
            listener.add_condition(
                conditions.ACCEPTED, conditions.FALSE,
                conditions.REASON_INVALID_TLS_CONFIGURATION,
                "No TLS configuration for Gateway Listener {} and protocol {}".format(
                    listener.name, listener.protocol))
            return False

        refs = listener.tls.get("certificateRefs") or []
        if listener.tls_mode == TLS_MODE_PASSTHROUGH:
            if listener.protocol == PROTOCOL_HTTPS:
                listener.add_condition(
                    conditions.ACCEPTED, conditions.FALSE,
                    conditions.REASON_UNSUPPORTED_PROTOCOL,
                    "HTTPS protocol is not supported with TLS mode Passthrough")
                return False
            if refs:
                logger.warning("certificateRefs of listener %s are ignored in Passthrough mode",
                               listener)
            return True

        if len(refs) != 1:
            return self.certificate_error(
                listener, conditions.REASON_INVALID_CERTIFICATE_REF,
                "One TLS CertificateRef is required in Terminate mode")

        ref = refs[0]
        group, kind = normalize_group(ref.get("group")), ref.get("kind") or KIND_SECRET
        if group != GROUP_CORE or kind != KIND_SECRET:
            return self.certificate_error(
                listener, conditions.REASON_INVALID_CERTIFICATE_REF,
                "Unsupported TLS CertificateRef group/kind: {}/{}".format(group, kind))

        gateway_namespace = gateway["metadata"]["namespace"]
        namespace, name = ref.get("namespace") or gateway_namespace, ref["name"]
        try:
            self.grants.check(KIND_GATEWAY, gateway_namespace, GROUP_CORE, KIND_SECRET,
                              name, namespace)
        except ReferenceNotPermitted as e:
            return self.certificate_error(listener, conditions.REASON_REF_NOT_PERMITTED, e.message)

        secret = self.store.get_secret(namespace, name)
        if secret is None:
            return self.certificate_error(
                listener, conditions.REASON_INVALID_CERTIFICATE_REF,
                "Secret {}/{} not found".format(namespace, name))
        try:
            data = Secret.decode(secret)
        except ValueError as e:
            return self.certificate_error(
                listener, conditions.REASON_INVALID_CERTIFICATE_REF,
                "Secret {}/{} cannot be decoded: {}".format(namespace, name, e))
        cert, key = data.get("tls.crt"), data.get("tls.key")
        if not cert or not key:
            return self.certificate_error(
                listener, conditions.REASON_INVALID_CERTIFICATE_REF,
                "Secret {}/{} must contain a non-empty tls.crt and tls.key".format(
                    namespace, name))

        certificates["{}/{}".format(namespace, name)] = {"certFile": cert, "keyFile": key}
        return True
