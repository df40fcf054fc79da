from gateway import dynamic
from gateway.backends import backend_namespace, is_core_service
from gateway.exceptions import InvalidKind
from gateway.listeners import KIND_GRPC_ROUTE
from gateway.middlewares import GRPC_FILTERS
from gateway.routes.http import HTTPRouteResolver
from gateway.rules import grpc_match_rule
from gateway.schemas import GRPC_ROUTE_SPEC_SCHEMA
from gateway.utils import join_host_port, normalize


class GRPCRouteResolver(HTTPRouteResolver):
    kind = KIND_GRPC_ROUTE
    schema = GRPC_ROUTE_SPEC_SCHEMA
    supported_filters = GRPC_FILTERS

    def unavailable(self, name, weight):
        return dynamic.weighted_member(
            name, weight, grpc_status=dynamic.GRPC_UNAVAILABLE_STATUS)

    def match_rule(self, hostnames, match):
        return grpc_match_rule(hostnames, match)

    def load_backend(self, route, ref):
        route_namespace = route["metadata"]["namespace"]
        namespace = backend_namespace(ref, route_namespace)
        self.backends.check_reference(self.kind, route_namespace, ref)
        if not is_core_service(ref):
            raise InvalidKind("Only Service backends are supported for GRPCRoute, got {}/{}".format(
                ref.get("group"), ref.get("kind")))

        service_port, addresses = self.backends.get_addresses(namespace, ref)
        scheme = self.backends.grpc_scheme(service_port)
        urls = [
            "{}://{}".format(scheme, join_host_port(address.ip, address.port))
            for address in addresses
        ]
        name = normalize("{}-{}-{}-grpc".format(namespace, ref["name"], ref["port"]))
        return name, dynamic.http_load_balancer(urls)
