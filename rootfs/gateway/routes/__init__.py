from gateway.routes.grpc import GRPCRouteResolver
from gateway.routes.http import HTTPRouteResolver
from gateway.routes.tcp import TCPRouteResolver
from gateway.routes.tls import TLSRouteResolver
from gateway.routes.udp import UDPRouteResolver

__all__ = (
    'HTTPRouteResolver', 'GRPCRouteResolver', 'TCPRouteResolver', 'TLSRouteResolver',
    'UDPRouteResolver',
)
