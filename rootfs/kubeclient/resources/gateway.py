from kubeclient.resources import Resource

__all__ = (
    'GatewayClass', 'Gateway', 'BaseRoute', 'HTTPRoute', 'GRPCRoute',
    'TCPRoute', 'TLSRoute', 'UDPRoute', 'ReferenceGrant',
)


class GatewayClass(Resource):
    kind = "GatewayClass"
    plural = "gatewayclasses"
    api_prefix = 'apis'
    api_version = 'gateway.networking.k8s.io/v1'
    namespaced = False
    has_status = True


class Gateway(Resource):
    kind = "Gateway"
    api_prefix = 'apis'
    api_version = 'gateway.networking.k8s.io/v1'
    has_status = True


class BaseRoute(Resource):
    abstract = True
    kind = "BaseRoute"
    api_prefix = 'apis'
    api_version = 'gateway.networking.k8s.io/v1'
    has_status = True


class HTTPRoute(BaseRoute):
    kind = "HTTPRoute"


class GRPCRoute(BaseRoute):
    kind = "GRPCRoute"


class TCPRoute(BaseRoute):
    kind = "TCPRoute"
    api_version = 'gateway.networking.k8s.io/v1alpha2'


class TLSRoute(BaseRoute):
    kind = "TLSRoute"
    api_version = 'gateway.networking.k8s.io/v1alpha2'


class UDPRoute(BaseRoute):
    kind = "UDPRoute"
    api_version = 'gateway.networking.k8s.io/v1alpha2'


class ReferenceGrant(Resource):
    kind = "ReferenceGrant"
    api_prefix = 'apis'
    api_version = 'gateway.networking.k8s.io/v1beta1'
