from gateway.listeners import KIND_TLS_ROUTE, TLS_MODE_PASSTHROUGH
from gateway.routes.tcp import L4RouteResolver
from gateway.rules import sni_rule


class TLSRouteResolver(L4RouteResolver):
    kind = KIND_TLS_ROUTE
    supports_hostnames = True

    def router(self, listener, hostnames):
        rule, priority = sni_rule(hostnames)
        return {
            "rule": rule,
            "priority": priority,
            "tls": {"passthrough": listener.tls_mode == TLS_MODE_PASSTHROUGH},
        }
