from kubeclient.resources import Resource

__all__ = ('Service', 'Endpoints')


class Service(Resource):
    kind = "Service"
    short_name = 'svc'


class Endpoints(Resource):
    kind = "Endpoints"
    plural = "endpoints"
    short_name = 'ep'
