from gateway.listeners import KIND_UDP_ROUTE
from gateway.routes.tcp import L4RouteResolver


class UDPRouteResolver(L4RouteResolver):
    kind = KIND_UDP_ROUTE
    partition = "udp"
    port_protocol = "UDP"

    def router(self, listener, hostnames):
        # UDP routers have no matching rule
        return {}
