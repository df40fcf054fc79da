"""
Full resolution of the watched Gateway API objects into one configuration.
"""
import logging

from gateway import settings
from gateway.backends import BackendResolver
from gateway.dynamic import new_configuration
from gateway.grants import ReferenceGrantChecker
from gateway.listeners import ListenerResolver
from gateway.registry import ExtensionRegistry
from gateway.routes import (
    GRPCRouteResolver, HTTPRouteResolver, TCPRouteResolver, TLSRouteResolver,
    UDPRouteResolver)
from gateway.status import StatusReconciler

logger = logging.getLogger(__name__)


class Provider(object):
    """
    Resolves the managed Gateways and their routes.

    Every call to load_configuration starts from scratch and writes the
    status of every object it looked at.
    """

    def __init__(self, store, controller_name=None, entry_points=None,
                 experimental_channel=None, native_lb_by_default=None, status_address=None,
                 registry=None):
        self.store = store
        self.controller_name = controller_name or settings.CONTROLLER_NAME
        self.entry_points = entry_points if entry_points is not None else settings.ENTRYPOINTS
        self.experimental_channel = settings.EXPERIMENTAL_CHANNEL \
            if experimental_channel is None else experimental_channel
        native_lb_by_default = settings.NATIVE_LB_BY_DEFAULT \
            if native_lb_by_default is None else native_lb_by_default
        self.status_address = status_address if status_address is not None \
            else settings.STATUS_ADDRESS
        self.registry = registry if registry is not None else ExtensionRegistry()

        self.grants = ReferenceGrantChecker(store)
        self.backends = BackendResolver(store, self.grants, self.registry, native_lb_by_default)
        self.listeners = ListenerResolver(
            store, self.grants, self.entry_points, self.experimental_channel)
        self.status = StatusReconciler(store, self.controller_name)

        kinds = [HTTPRouteResolver, GRPCRouteResolver]
        if self.experimental_channel:
            kinds.extend([TCPRouteResolver, TLSRouteResolver, UDPRouteResolver])
        self.route_resolvers = [
            kind(store, self.backends, self.registry, self.status, self.controller_name)
            for kind in kinds
        ]

    def register_backend(self, group, kind, func):
        self.registry.register_backend(group, kind, func)

    def register_filter(self, group, kind, func):
        self.registry.register_filter(group, kind, func)

    def gateway_classes(self):
        """Return the names of the GatewayClasses handled by this controller."""
        names = set()
        for gateway_class in self.store.list_gateway_classes():
            if gateway_class.get("spec", {}).get("controllerName") != self.controller_name:
                continue
            names.add(gateway_class["metadata"]["name"])
            self.status.update_gateway_class(gateway_class)
        return names

    def status_addresses(self):
        if self.status_address.get("ip"):
            return [{"type": "IPAddress", "value": self.status_address["ip"]}]
        if self.status_address.get("hostname"):
            return [{"type": "Hostname", "value": self.status_address["hostname"]}]

        service = self.status_address.get("service") or {}
        if not service.get("name"):
            return []
        obj = self.store.get_service(service.get("namespace"), service["name"])
        if obj is None:
            logger.error("cannot find the status address Service %s/%s",
                         service.get("namespace"), service["name"])
            return []
        addresses = []
        for ingress in obj.get("status", {}).get("loadBalancer", {}).get("ingress") or []:
            if ingress.get("hostname"):
                addresses.append({"type": "Hostname", "value": ingress["hostname"]})
            elif ingress.get("ip"):
                addresses.append({"type": "IPAddress", "value": ingress["ip"]})
        return addresses

    def load_configuration(self):
        configuration = new_configuration()
        gateway_classes = self.gateway_classes()

        gateways, listeners, certificates = [], [], {}
        for gateway in self.store.list_gateways():
            if gateway.get("spec", {}).get("gatewayClassName") not in gateway_classes:
                continue
            gateway_listeners, gateway_certificates = self.listeners.resolve(gateway)
            gateways.append((gateway, gateway_listeners))
            listeners.extend(gateway_listeners)
            certificates.update(gateway_certificates)

        for resolver in self.route_resolvers:
            resolver.resolve(listeners, configuration)

        # attached routes are only known once every route was resolved
        addresses = self.status_addresses() if gateways else []
        for gateway, gateway_listeners in gateways:
            self.status.update_gateway(gateway, gateway_listeners, addresses)

        configuration["tls"]["certificates"] = [
            certificates[key] for key in sorted(certificates)
        ]
        return configuration
