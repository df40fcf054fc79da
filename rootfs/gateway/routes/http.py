import logging

from gateway import dynamic
from gateway.backends import (
    backend_namespace, backend_weight, is_core_service, is_internal_service)
from gateway.exceptions import GatewayError
from gateway.listeners import KIND_HTTP_ROUTE, PROTOCOL_HTTPS
from gateway.middlewares import MiddlewareBuilder
from gateway.routes.base import ResolvedRefs, RouteResolver
from gateway.rules import http_match_rule
from gateway.schemas import HTTP_ROUTE_SPEC_SCHEMA
from gateway.utils import join_host_port, make_router_name, normalize

logger = logging.getLogger(__name__)


class HTTPRouteResolver(RouteResolver):
    kind = KIND_HTTP_ROUTE
    schema = HTTP_ROUTE_SPEC_SCHEMA
    supported_filters = None

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.middlewares = MiddlewareBuilder(self.registry, self.supported_filters)

    @property
    def invalid_prefix(self):
        return "invalid-{}".format(self.kind.lower())

    def unavailable(self, name, weight):
        return dynamic.weighted_member(name, weight, status=dynamic.HTTP_UNAVAILABLE_STATUS)

    def match_rule(self, hostnames, match):
        return http_match_rule(hostnames, match)

    def load_route(self, listener, route, hostnames):
        configuration = dynamic.new_configuration()
        http = configuration["http"]
        metadata = route["metadata"]
        refs = ResolvedRefs(metadata.get("generation", 0))
        rules = route.get("spec", {}).get("rules") or [{}]

        for rule_index, rule in enumerate(rules):
            route_key = self.route_key(route, listener, rule_index)
            for match in rule.get("matches") or [{}]:
                rule_str, priority = self.match_rule(hostnames, match)
                router_name = make_router_name(rule_str, route_key)
                router = {
                    "rule": rule_str,
                    # earlier rules win ties
                    "priority": priority + len(rules) - rule_index,
                    "entryPoints": [listener.entry_point],
                }
                if listener.protocol == PROTOCOL_HTTPS:
                    router["tls"] = {}

                try:
                    names, middlewares = self.middlewares.build(
                        metadata["namespace"], router_name, rule.get("filters"))
                except GatewayError as e:
                    logger.error("cannot build the filters of %s %s/%s: %s", self.kind,
                                 metadata["namespace"], metadata["name"], e.message)
                    refs.fail(e)
                    service_name = "{}-err-wrr".format(router_name)
                    http["services"][service_name] = dynamic.weighted([
                        self.unavailable("{}-filter".format(self.invalid_prefix), 1)])
                    router["service"] = service_name
                    http["routers"][router_name] = router
                    continue

                if names:
                    router["middlewares"] = names
                http["middlewares"].update(middlewares)
                router["service"] = self.load_service(
                    configuration, route, rule, router_name, refs)
                http["routers"][router_name] = router
        return configuration, refs.condition()

    def load_service(self, configuration, route, rule, router_name, refs):
        """Return the name of the service of a router, defining it when needed."""
        services = configuration["http"]["services"]
        backend_refs = rule.get("backendRefs") or []
        if len(backend_refs) == 1 and is_internal_service(backend_refs[0]):
            return backend_refs[0]["name"]

        members = []
        for ref in backend_refs:
            weight = backend_weight(ref)
            try:
                name, service = self.load_backend(route, ref)
            except GatewayError as e:
                logger.error("cannot load the backend %s of %s %s/%s: %s", ref.get("name"),
                             self.kind, route["metadata"]["namespace"],
                             route["metadata"]["name"], e.message)
                refs.fail(e)
                members.append(self.unavailable(
                    "{}-backend".format(self.invalid_prefix), weight))
                continue
            if service is not None:
                services[name] = service
            members.append(dynamic.weighted_member(name, weight))
        if not members:
            # nothing can answer the request
            members.append(self.unavailable("{}-backend".format(self.invalid_prefix), 1))

        name = "{}-wrr".format(router_name)
        services[name] = dynamic.weighted(members)
        return name

    def load_backend(self, route, ref):
        """Return (service name, service) of a backendRef, service is None if defined elsewhere."""
        route_namespace = route["metadata"]["namespace"]
        namespace = backend_namespace(ref, route_namespace)
        self.backends.check_reference(self.kind, route_namespace, ref)
        if not is_core_service(ref):
            return self.backends.resolve_extension(ref, namespace)

        service_port, addresses = self.backends.get_addresses(namespace, ref)
        scheme = self.backends.http_scheme(service_port)
        urls = [
            "{}://{}".format(scheme, join_host_port(address.ip, address.port))
            for address in addresses
        ]
        name = normalize("{}-{}-{}".format(namespace, ref["name"], ref["port"]))
        return name, dynamic.http_load_balancer(urls)
