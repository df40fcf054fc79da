from kubeclient.resources import Resource

__all__ = ('Namespace', )


class Namespace(Resource):
    kind = "Namespace"
    short_name = 'ns'
    namespaced = False
