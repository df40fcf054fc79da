"""
Attachment of routes to the listeners of managed Gateways.

The algorithm is the same for every route kind, a kind only brings the way
its rules are turned into routers and services (``load_route``).
"""
import logging

from gateway import conditions
from gateway.dynamic import merge_configuration
from gateway.exceptions import ValidationError
from gateway.grants import GROUP_GATEWAY
from gateway.listeners import KIND_GATEWAY, NAMESPACE_ALL
from gateway.rules import find_matching_hostnames
from gateway.utils import normalize, to_ascii_hostname, validate_json

logger = logging.getLogger(__name__)


def parent_namespace(parent_ref, route_namespace):
    return parent_ref.get("namespace") or route_namespace


def is_gateway_ref(parent_ref):
    return (parent_ref.get("group") or GROUP_GATEWAY) == GROUP_GATEWAY and \
        (parent_ref.get("kind") or KIND_GATEWAY) == KIND_GATEWAY


def match_listener(listener, route_namespace, parent_ref):
    """Return whether parent_ref designates listener."""
    if not is_gateway_ref(parent_ref):
        return False
    if listener.gateway_namespace != parent_namespace(parent_ref, route_namespace):
        return False
    if listener.gateway_name != parent_ref.get("name"):
        return False
    section_name = parent_ref.get("sectionName")
    if section_name and section_name != listener.name:
        return False
    port = parent_ref.get("port")
    if port is not None and port != listener.port:
        return False
    return True


def allow_route(listener, route_namespace, route_kind):
    if route_kind not in listener.allowed_kinds:
        return False
    return any(
        namespace in (NAMESPACE_ALL, route_namespace)
        for namespace in listener.allowed_namespaces
    )


class ResolvedRefs(object):
    """Keeps the first resolution error met while building the rules of a route."""

    def __init__(self, generation):
        self.generation = generation
        self.error = None

    def fail(self, error):
        if self.error is None:
            self.error = error

    def condition(self):
        if self.error is None:
            return conditions.new_condition(
                conditions.RESOLVED_REFS, conditions.TRUE, conditions.REASON_RESOLVED_REFS,
                "Resolved refs", self.generation)
        return conditions.new_condition(
            conditions.RESOLVED_REFS, conditions.FALSE, self.error.reason, self.error.message,
            self.generation)


class RouteResolver(object):
    kind = None
    schema = None
    supports_hostnames = True

    def __init__(self, store, backends, registry, status, controller_name):
        self.store = store
        self.backends = backends
        self.registry = registry
        self.status = status
        self.controller_name = controller_name

    def resolve(self, listeners, configuration):
        """
        Attach the routes of this kind to listeners, merging their routers into
        configuration and writing their status.
        """
        gateways = {(listener.gateway_namespace, listener.gateway_name) for listener in listeners}
        for route in self.store.list_routes(self.kind):
            if not self.references_gateways(route, gateways):
                continue
            parents = self.resolve_route(route, listeners, configuration)
            self.status.update_route(self.kind, route, parents)

    def references_gateways(self, route, gateways):
        namespace = route["metadata"]["namespace"]
        for parent_ref in route.get("spec", {}).get("parentRefs") or []:
            if not isinstance(parent_ref, dict) or not is_gateway_ref(parent_ref):
                continue
            if (parent_namespace(parent_ref, namespace), parent_ref.get("name")) in gateways:
                return True
        return False

    def resolve_route(self, route, listeners, configuration):
        metadata, spec = route["metadata"], route.get("spec", {})
        namespace, generation = metadata["namespace"], metadata.get("generation", 0)
        parent_refs = spec.get("parentRefs") or []

        try:
            validate_json(spec, self.schema)
            hostnames = self.route_hostnames(route)
        except ValidationError as e:
            logger.error("%s %s/%s is invalid: %s", self.kind, namespace, metadata["name"],
                         e.message)
            return [
                self.parent_status(parent_ref, [conditions.new_condition(
                    conditions.ACCEPTED, conditions.FALSE, conditions.REASON_UNSUPPORTED_VALUE,
                    e.message, generation)])
                for parent_ref in parent_refs
            ]

        parents = []
        for parent_ref in parent_refs:
            route_conditions = [conditions.new_condition(
                conditions.ACCEPTED, conditions.FALSE, conditions.REASON_NO_MATCHING_PARENT,
                "No listener matches the parent reference", generation)]
            for listener in listeners:
                if not match_listener(listener, namespace, parent_ref):
                    continue

                accepted = True
                if not allow_route(listener, namespace, self.kind):
                    conditions.update_route_accepted(
                        route_conditions, conditions.REASON_NOT_ALLOWED_BY_LISTENERS)
                    accepted = False
                matched, ok = find_matching_hostnames(listener.hostname, hostnames)
                if not ok:
                    conditions.update_route_accepted(
                        route_conditions, conditions.REASON_NO_MATCHING_LISTENER_HOSTNAME)
                    accepted = False

                if accepted:
                    listener.attached_routes += 1
                    # only attached listeners are programmed in the proxy
                    if listener.attached:
                        conditions.update_route_accepted(
                            route_conditions, conditions.REASON_ACCEPTED)

                route_configuration, resolved_refs = self.load_route(listener, route, matched)
                if accepted and listener.attached:
                    merge_configuration(route_configuration, configuration)
                conditions.upsert_resolved_refs(route_conditions, resolved_refs)

            parents.append(self.parent_status(parent_ref, route_conditions))
        return parents

    def route_hostnames(self, route):
        if not self.supports_hostnames:
            return []
        return [
            to_ascii_hostname(hostname)
            for hostname in route.get("spec", {}).get("hostnames") or []
        ]

    def parent_status(self, parent_ref, route_conditions):
        return {
            "parentRef": parent_ref,
            "controllerName": self.controller_name,
            "conditions": route_conditions,
        }

    def route_key(self, route, listener, rule_index=None):
        metadata = route["metadata"]
        key = "{}-{}-{}-gw-{}-{}-ep-{}".format(
            self.kind.lower(), metadata["namespace"], metadata["name"],
            listener.gateway_namespace, listener.gateway_name, listener.entry_point)
        if rule_index is not None:
            key = "{}-{}".format(key, rule_index)
        return normalize(key)

    def load_route(self, listener, route, hostnames):
        """
        Build the configuration of route on listener.

        Returns the configuration and the ResolvedRefs condition.
        """
        raise NotImplementedError
