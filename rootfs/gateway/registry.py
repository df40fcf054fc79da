from gateway.exceptions import InvalidKind
from gateway.grants import normalize_group


class ExtensionRegistry(object):
    """
    Builders for the backend and filter kinds outside the core Gateway API.

    A backend builder is called as ``func(name, namespace)`` and returns
    ``(service_name, service)``; a filter builder is called the same way and
    returns ``(middleware_name, middleware)``. ``service``/``middleware`` may be
    None when the name refers to something defined elsewhere.
    """

    def __init__(self):
        self.backends = {}
        self.filters = {}

    def register_backend(self, group, kind, func):
        self.backends[(normalize_group(group), kind)] = func

    def register_filter(self, group, kind, func):
        self.filters[(normalize_group(group), kind)] = func

    def backend_builder(self, group, kind):
        func = self.backends.get((normalize_group(group), kind))
        if func is None:
            raise InvalidKind("Unsupported backend kind {}/{}".format(group, kind))
        return func

    def filter_builder(self, group, kind):
        func = self.filters.get((normalize_group(group), kind))
        if func is None:
            raise InvalidKind("Unsupported filter extension {}/{}".format(group, kind))
        return func
