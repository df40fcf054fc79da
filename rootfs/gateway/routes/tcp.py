import logging

from gateway import dynamic
from gateway.backends import (
    PROVIDER_SEPARATOR, backend_namespace, backend_weight, is_core_service)
from gateway.exceptions import GatewayError, InvalidKind
from gateway.listeners import KIND_TCP_ROUTE, PROTOCOL_TLS, TLS_MODE_PASSTHROUGH
from gateway.routes.base import ResolvedRefs, RouteResolver
from gateway.rules import UNIVERSAL_SNI_RULE
from gateway.schemas import L4_ROUTE_SPEC_SCHEMA
from gateway.utils import join_host_port, make_router_name, normalize

logger = logging.getLogger(__name__)


class L4RouteResolver(RouteResolver):
    """
    Routes of the connection oriented kinds, one router per route and listener.

    Each rule becomes a weighted service; several rules are balanced by an
    aggregate weighted service.
    """
    schema = L4_ROUTE_SPEC_SCHEMA
    supports_hostnames = False
    partition = "tcp"
    port_protocol = "TCP"

    def router(self, listener, hostnames):
        router = {"rule": UNIVERSAL_SNI_RULE}
        if listener.protocol == PROTOCOL_TLS:
            router["tls"] = {"passthrough": listener.tls_mode == TLS_MODE_PASSTHROUGH}
        return router

    def load_route(self, listener, route, hostnames):
        configuration = dynamic.new_configuration()
        services = configuration[self.partition]["services"]
        refs = ResolvedRefs(route["metadata"].get("generation", 0))

        route_key = self.route_key(route, listener)
        router = self.router(listener, hostnames)
        router_name = make_router_name(router.get("rule", ""), route_key)
        router["entryPoints"] = [listener.entry_point]

        rule_services = []
        for rule_index, rule in enumerate(route.get("spec", {}).get("rules") or []):
            name = "{}-wrr-{}".format(route_key, rule_index)
            services[name] = dynamic.weighted(
                self.load_members(configuration, route, rule, route_key, refs))
            rule_services.append(name)

        if len(rule_services) == 1:
            router["service"] = rule_services[0]
        else:
            router["service"] = "{}-wrr".format(route_key)
            services[router["service"]] = dynamic.weighted([
                dynamic.weighted_member(name, 1) for name in rule_services
            ])
        configuration[self.partition]["routers"][router_name] = router
        return configuration, refs.condition()

    def load_members(self, configuration, route, rule, route_key, refs):
        services = configuration[self.partition]["services"]
        members = []
        for ref in rule.get("backendRefs") or []:
            weight = backend_weight(ref)
            try:
                name = self.load_backend(configuration, route, ref)
            except GatewayError as e:
                logger.error("cannot load the backend %s of %s %s/%s: %s", ref.get("name"),
                             self.kind, route["metadata"]["namespace"],
                             route["metadata"]["name"], e.message)
                refs.fail(e)
                # a service without servers refuses its share of the connections
                name = "{}-err-lb".format(route_key)
                services[name] = dynamic.l4_load_balancer([])
            members.append(dynamic.weighted_member(name, weight))
        return members

    def load_backend(self, configuration, route, ref):
        route_namespace = route["metadata"]["namespace"]
        namespace = backend_namespace(ref, route_namespace)
        self.backends.check_reference(self.kind, route_namespace, ref)
        if not is_core_service(ref):
            if PROVIDER_SEPARATOR in ref["name"]:
                return ref["name"]
            raise InvalidKind("Unsupported backend kind {}/{} for {}".format(
                ref.get("group"), ref.get("kind"), self.kind))

        _, addresses = self.backends.get_addresses(namespace, ref, self.port_protocol)
        name = normalize("{}-{}-{}".format(namespace, ref["name"], ref["port"]))
        configuration[self.partition]["services"][name] = dynamic.l4_load_balancer([
            join_host_port(address.ip, address.port) for address in addresses
        ])
        return name


class TCPRouteResolver(L4RouteResolver):
    kind = KIND_TCP_ROUTE
