"""
Status of the GatewayClasses, Gateways and routes handled by the controller.

A status is only written when it differs from the observed one, transition
times are not part of the comparison.
"""
import logging

from kubeclient.exceptions import KubeException

from gateway import conditions

logger = logging.getLogger(__name__)

NO_ERROR = "No error found"
GATEWAY_SCHEDULED = "Gateway successfully scheduled"
LISTENERS_NOT_VALID = "All Listeners must be valid"


def listener_statuses_equal(listeners1, listeners2):
    if len(listeners1 or []) != len(listeners2 or []):
        return False
    for listener1, listener2 in zip(listeners1 or [], listeners2 or []):
        for field in ("name", "attachedRoutes", "supportedKinds"):
            if listener1.get(field) != listener2.get(field):
                return False
        if not conditions.conditions_equal(
                listener1.get("conditions"), listener2.get("conditions")):
            return False
    return True


def gateway_statuses_equal(status1, status2):
    return (status1.get("addresses") or []) == (status2.get("addresses") or []) and \
        conditions.conditions_equal(status1.get("conditions"), status2.get("conditions")) and \
        listener_statuses_equal(status1.get("listeners"), status2.get("listeners"))


def find_parent(parents, parent):
    for candidate in parents or []:
        if candidate.get("parentRef") == parent["parentRef"] and \
                candidate.get("controllerName") == parent["controllerName"]:
            return candidate
    return None


def route_statuses_equal(parents1, parents2):
    """Compare the parent statuses of two routes regardless of their order."""
    if len(parents1 or []) != len(parents2 or []):
        return False
    for parent in parents1 or []:
        other = find_parent(parents2, parent)
        if other is None or not conditions.conditions_equal(
                parent.get("conditions"), other.get("conditions")):
            return False
    return True


class StatusReconciler(object):

    def __init__(self, store, controller_name):
        self.store = store
        self.controller_name = controller_name

    def write(self, kind, namespace, name, status):
        try:
            return self.store.update_status(kind, namespace, name, status)
        except KubeException as e:
            # the next pass tries again
            logger.error("cannot update the status of %s %s/%s: %s", kind, namespace, name, e)
            return False

    def update_gateway_class(self, gateway_class):
        metadata = gateway_class["metadata"]
        observed = gateway_class.get("status") or {}
        accepted = conditions.new_condition(
            conditions.ACCEPTED, conditions.TRUE, conditions.REASON_HANDLED,
            "Handled by {} controller".format(self.controller_name),
            metadata.get("generation", 0))
        current = conditions.find_condition(observed.get("conditions"), conditions.ACCEPTED)
        if current is not None and conditions.conditions_equal([current], [accepted]):
            return False

        status = dict(observed)
        status["conditions"] = [
            condition for condition in observed.get("conditions") or []
            if condition.get("type") != conditions.ACCEPTED
        ] + [accepted]
        return self.write("GatewayClass", None, metadata["name"], status)

    def gateway_status(self, gateway, listeners, addresses):
        """Build the status of gateway from its resolved listeners."""
        generation = gateway["metadata"].get("generation", 0)
        observed = gateway.get("status") or {}
        observed_listeners = {
            listener.get("name"): listener for listener in observed.get("listeners") or []
        }

        listener_statuses, valid = [], True
        for listener in listeners:
            status = listener.status()
            if listener.conditions:
                valid = False
            else:
                status["conditions"] = [
                    conditions.new_condition(
                        condition_type, conditions.TRUE, reason, NO_ERROR, generation)
                    for condition_type, reason in (
                        (conditions.ACCEPTED, conditions.REASON_ACCEPTED),
                        (conditions.RESOLVED_REFS, conditions.REASON_RESOLVED_REFS),
                        (conditions.PROGRAMMED, conditions.REASON_PROGRAMMED),
                    )
                ]
            status["conditions"] = conditions.replace_conditions(
                observed_listeners.get(listener.name, {}).get("conditions"),
                status["conditions"])
            listener_statuses.append(status)

        if valid:
            gateway_conditions = [
                conditions.new_condition(
                    conditions.ACCEPTED, conditions.TRUE, conditions.REASON_ACCEPTED,
                    GATEWAY_SCHEDULED, generation),
                conditions.new_condition(
                    conditions.PROGRAMMED, conditions.TRUE, conditions.REASON_PROGRAMMED,
                    GATEWAY_SCHEDULED, generation),
            ]
        else:
            gateway_conditions = [
                conditions.new_condition(
                    conditions.ACCEPTED, conditions.FALSE, conditions.REASON_LISTENERS_NOT_VALID,
                    LISTENERS_NOT_VALID, generation),
                conditions.new_condition(
                    conditions.PROGRAMMED, conditions.FALSE, conditions.REASON_INVALID,
                    LISTENERS_NOT_VALID, generation),
            ]

        return {
            "addresses": list(addresses or []),
            "conditions": conditions.merge_conditions(
                observed.get("conditions"), gateway_conditions),
            "listeners": listener_statuses,
        }

    def update_gateway(self, gateway, listeners, addresses):
        metadata = gateway["metadata"]
        status = self.gateway_status(gateway, listeners, addresses)
        if gateway_statuses_equal(gateway.get("status") or {}, status):
            return False
        return self.write("Gateway", metadata["namespace"], metadata["name"], status)

    def update_route(self, kind, route, parents):
        """
        Write the parent statuses of route, keeping those of other controllers.
        """
        metadata = route["metadata"]
        observed = (route.get("status") or {}).get("parents") or []
        statuses = []
        for parent in parents:
            previous = find_parent(observed, parent) or {}
            parent = dict(parent)
            parent["conditions"] = conditions.replace_conditions(
                previous.get("conditions"), parent["conditions"])
            statuses.append(parent)
        statuses.extend(
            parent for parent in observed
            if parent.get("controllerName") != self.controller_name
        )
        if route_statuses_equal(observed, statuses):
            return False
        return self.write(kind, metadata["namespace"], metadata["name"], {"parents": statuses})
