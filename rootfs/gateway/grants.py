import logging

from gateway.exceptions import ReferenceNotPermitted

logger = logging.getLogger(__name__)

GROUP_CORE = "core"
GROUP_GATEWAY = "gateway.networking.k8s.io"


def normalize_group(group):
    return group or GROUP_CORE


class ReferenceGrantChecker(object):
    """Authorizes references that cross a namespace boundary."""

    def __init__(self, store):
        self.store = store

    def is_granted(self, from_kind, from_namespace, to_group, to_kind, to_name, to_namespace,
                   from_group=GROUP_GATEWAY):
        if from_namespace == to_namespace:
            return True
        from_group, to_group = normalize_group(from_group), normalize_group(to_group)
        for grant in self.store.list_reference_grants(to_namespace):
            spec = grant.get("spec", {})
            if not any(
                normalize_group(ref.get("group")) == from_group and
                ref.get("kind") == from_kind and
                ref.get("namespace") == from_namespace
                for ref in spec.get("from") or []
            ):
                continue
            if any(
                normalize_group(ref.get("group")) == to_group and
                ref.get("kind") == to_kind and
                ref.get("name") in (None, "", to_name)
                for ref in spec.get("to") or []
            ):
                return True
        return False

    def check(self, from_kind, from_namespace, to_group, to_kind, to_name, to_namespace,
              from_group=GROUP_GATEWAY):
        if not self.is_granted(from_kind, from_namespace, to_group, to_kind, to_name,
                               to_namespace, from_group):
            message = "Cannot reference {} {}/{} from {} in namespace {}: " \
                      "missing ReferenceGrant".format(
                          to_kind, to_namespace, to_name, from_kind, from_namespace)
            logger.debug(message)
            raise ReferenceNotPermitted(message)
