"""
Status conditions of Gateway API objects.

Conditions are plain dicts shaped like metav1.Condition, with the
camelCase keys Kubernetes serializes.
"""
from datetime import datetime, timezone

from kubeclient import KubeHTTPClient

# condition types
ACCEPTED = "Accepted"
PROGRAMMED = "Programmed"
RESOLVED_REFS = "ResolvedRefs"
CONFLICTED = "Conflicted"

TRUE = "True"
FALSE = "False"

# reasons
REASON_ACCEPTED = "Accepted"
REASON_PROGRAMMED = "Programmed"
REASON_RESOLVED_REFS = "ResolvedRefs"
REASON_HANDLED = "Handled"
REASON_INVALID = "Invalid"
REASON_LISTENERS_NOT_VALID = "ListenersNotValid"
REASON_PORT_UNAVAILABLE = "PortUnavailable"
REASON_UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
REASON_INVALID_ROUTE_KINDS = "InvalidRouteKinds"
REASON_INVALID_ROUTE_NAMESPACES_SELECTOR = "InvalidRouteNamespacesSelector"
REASON_DUPLICATE_LISTENER = "DuplicateListener"
REASON_INVALID_TLS_CONFIGURATION = "InvalidTLSConfiguration"
REASON_INVALID_CERTIFICATE_REF = "InvalidCertificateRef"
REASON_REF_NOT_PERMITTED = "RefNotPermitted"
REASON_NO_MATCHING_PARENT = "NoMatchingParent"
REASON_NOT_ALLOWED_BY_LISTENERS = "NotAllowedByListeners"
REASON_NO_MATCHING_LISTENER_HOSTNAME = "NoMatchingListenerHostname"
REASON_BACKEND_NOT_FOUND = "BackendNotFound"
REASON_UNSUPPORTED_VALUE = "UnsupportedValue"

# fields compared when deciding whether a status changed
COMPARED_FIELDS = ("type", "status", "reason", "message", "observedGeneration")


def now():
    return datetime.now(timezone.utc).strftime(KubeHTTPClient.DATETIME_FORMAT)


def new_condition(type, status, reason, message, generation=0, transition_time=None):
    return {
        "type": type,
        "status": status,
        "reason": reason,
        "message": message,
        "observedGeneration": generation,
        "lastTransitionTime": transition_time or now(),
    }


def find_condition(conditions, type):
    for condition in conditions or []:
        if condition.get("type") == type:
            return condition
    return None


def merge_conditions(existing, new, transition_time=None):
    """
    Merge new conditions into existing ones.

    A condition replaces the existing condition of the same type, others are
    kept. lastTransitionTime only moves when the status itself changes.
    """
    result = [dict(condition) for condition in existing or []]
    for condition in new:
        current = find_condition(result, condition["type"])
        if current is None:
            condition = dict(condition)
            condition["lastTransitionTime"] = (
                transition_time or condition.get("lastTransitionTime") or now())
            result.append(condition)
            continue
        if current.get("status") != condition["status"]:
            current["status"] = condition["status"]
            current["lastTransitionTime"] = (
                transition_time or condition.get("lastTransitionTime") or now())
        current["reason"] = condition["reason"]
        current["message"] = condition["message"]
        current["observedGeneration"] = condition["observedGeneration"]
    return result


def replace_conditions(existing, new, transition_time=None):
    """
    Like merge_conditions, but conditions of types absent from new are dropped.
    """
    types = {condition["type"] for condition in new}
    kept = [condition for condition in existing or [] if condition.get("type") in types]
    return merge_conditions(kept, new, transition_time)


def conditions_equal(conditions1, conditions2):
    """Compare two condition lists regardless of order and transition times."""
    if len(conditions1 or []) != len(conditions2 or []):
        return False
    for condition in conditions1 or []:
        other = find_condition(conditions2, condition.get("type"))
        if other is None:
            return False
        for field in COMPARED_FIELDS:
            if condition.get(field) != other.get(field):
                return False
    return True


def update_route_accepted(conditions, reason):
    """
    Record the outcome of matching one listener on a route parent.

    Once a listener accepted the route, the condition stays True.
    """
    condition = find_condition(conditions, ACCEPTED)
    if condition is None or condition["status"] == TRUE:
        return conditions
    condition["reason"] = reason
    condition["lastTransitionTime"] = now()
    if reason == REASON_ACCEPTED:
        condition["status"] = TRUE
        condition["message"] = ""
    return conditions


def upsert_resolved_refs(conditions, resolved):
    """Set the ResolvedRefs condition unless a previous rule already failed it."""
    current = find_condition(conditions, RESOLVED_REFS)
    if current is None:
        conditions.append(resolved)
    elif current["status"] != FALSE:
        conditions[conditions.index(current)] = resolved
    return conditions
