import base64
import copy
import logging
import unittest

from kubeclient.store import ResourceStore, object_key

from gateway.provider import Provider

CONTROLLER_NAME = "drycc.cc/gateway-controller"
ENTRYPOINTS = {
    "web": {"address": ":80"},
    "websecure": {"address": ":443", "http_tls": True},
    "tcp": {"address": ":9000"},
    "udp": {"address": ":9053"},
}


class FakeStore(ResourceStore):
    """A ResourceStore fed by the tests instead of informers."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.objects = {}
        self.writes = []

    def add(self, kind, obj):
        self.objects.setdefault(kind, {})[object_key(obj)] = obj
        return obj

    def delete(self, kind, namespace, name):
        self.objects.get(kind, {}).pop((namespace or '', name), None)

    def items(self, kind):
        return dict(self.objects.get(kind, {}))

    def watch_all(self, stop_event=None):
        return self.events

    def write_status(self, kind, namespace, name, data):
        self.writes.append((kind, namespace, name, copy.deepcopy(data["status"])))
        self.add(kind, data)

    def statuses(self, kind):
        return [write for write in self.writes if write[0] == kind]


def encode(value):
    return base64.b64encode(value.encode('utf-8')).decode('ascii')


class TestCase(unittest.TestCase):

    def setUp(self):
        logging.disable(logging.ERROR)
        self.store = FakeStore()

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def provider(self, **kwargs):
        kwargs.setdefault("controller_name", CONTROLLER_NAME)
        kwargs.setdefault("entry_points", ENTRYPOINTS)
        kwargs.setdefault("experimental_channel", True)
        kwargs.setdefault("native_lb_by_default", False)
        kwargs.setdefault("status_address", {"ip": "10.0.0.100"})
        return Provider(self.store, **kwargs)

    def add_gateway_class(self, name="drycc", controller_name=CONTROLLER_NAME):
        return self.store.add("GatewayClass", {
            "metadata": {"name": name, "generation": 1},
            "spec": {"controllerName": controller_name},
        })

    def add_gateway(self, listeners, name="gateway", namespace="default", class_name="drycc"):
        return self.store.add("Gateway", {
            "metadata": {"name": name, "namespace": namespace, "generation": 1},
            "spec": {"gatewayClassName": class_name, "listeners": listeners},
        })

    def add_namespace(self, name, labels=None):
        return self.store.add("Namespace", {"metadata": {"name": name, "labels": labels or {}}})

    def add_route(self, kind, spec, name="route", namespace="default"):
        spec = dict(spec)
        spec.setdefault("parentRefs", [{"name": "gateway"}])
        return self.store.add(kind, {
            "metadata": {"name": name, "namespace": namespace, "generation": 1},
            "spec": spec,
        })

    def add_service(self, name="whoami", namespace="default", ports=None, cluster_ip="10.10.0.1",
                    annotations=None):
        return self.store.add("Service", {
            "metadata": {"name": name, "namespace": namespace, "annotations": annotations or {}},
            "spec": {
                "clusterIP": cluster_ip,
                "ports": ports or [{"name": "web", "port": 80, "protocol": "TCP"}],
            },
        })

    def add_endpoints(self, name="whoami", namespace="default", ips=("10.42.0.1", "10.42.0.2"),
                      port=8080, port_name="web", not_ready=()):
        return self.store.add("Endpoints", {
            "metadata": {"name": name, "namespace": namespace},
            "subsets": [{
                "addresses": [{"ip": ip} for ip in ips],
                "notReadyAddresses": [{"ip": ip} for ip in not_ready],
                "ports": [{"name": port_name, "port": port, "protocol": "TCP"}],
            }],
        })

    def add_secret(self, name="tls", namespace="default", cert="CERT", key="KEY"):
        return self.store.add("Secret", {
            "metadata": {"name": name, "namespace": namespace},
            "type": "kubernetes.io/tls",
            "data": {"tls.crt": encode(cert), "tls.key": encode(key)},
        })

    def add_reference_grant(self, namespace, from_refs, to_refs, name="grant"):
        return self.store.add("ReferenceGrant", {
            "metadata": {"name": name, "namespace": namespace},
            "spec": {"from": from_refs, "to": to_refs},
        })

    def add_whoami(self, namespace="default"):
        self.add_service(namespace=namespace)
        self.add_endpoints(namespace=namespace)

    def last_status(self, kind, name, namespace="default"):
        return self.store.get_status(kind, namespace, name)

    def route_parent(self, kind, name="route", namespace="default", index=0):
        return self.last_status(kind, name, namespace)["parents"][index]

    def condition(self, conditions, type):
        for condition in conditions:
            if condition["type"] == type:
                return condition
        self.fail("no {} condition in {}".format(type, conditions))


HTTP_LISTENER = {"name": "http", "port": 80, "protocol": "HTTP"}
