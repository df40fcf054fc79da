from gateway.backends import BackendAddress, BackendResolver, is_internal_service
from gateway.exceptions import BackendNotFound, UnsupportedProtocol
from gateway.grants import ReferenceGrantChecker
from gateway.registry import ExtensionRegistry
from gateway.tests import TestCase


class BackendResolverTest(TestCase):

    def setUp(self):
        super().setUp()
        self.backends = BackendResolver(
            self.store, ReferenceGrantChecker(self.store), ExtensionRegistry())

    def test_addresses(self):
        self.add_whoami()
        service_port, addresses = self.backends.get_addresses(
            "default", {"name": "whoami", "port": 80})
        self.assertEqual(service_port["name"], "web")
        self.assertEqual(addresses, [
            BackendAddress("10.42.0.1", 8080), BackendAddress("10.42.0.2", 8080),
        ])

    def test_not_ready_and_duplicate_addresses(self):
        self.add_service()
        endpoints = self.add_endpoints(ips=["10.42.0.1"], not_ready=["10.42.0.9"])
        endpoints["subsets"].append({
            "addresses": [{"ip": "10.42.0.1"}, {"ip": "fd00::1"}],
            "ports": [{"name": "web", "port": 8080}],
        })
        _, addresses = self.backends.get_addresses("default", {"name": "whoami", "port": 80})
        self.assertEqual(addresses, [
            BackendAddress("10.42.0.1", 8080), BackendAddress("fd00::1", 8080),
        ])

    def test_unnamed_port(self):
        self.add_service(ports=[{"port": 80, "protocol": "TCP"}])
        self.add_endpoints(port_name=None, ips=["10.42.0.1"])
        _, addresses = self.backends.get_addresses("default", {"name": "whoami", "port": 80})
        self.assertEqual(addresses, [BackendAddress("10.42.0.1", 8080)])

    def test_other_port_name(self):
        self.add_service()
        self.add_endpoints(port_name="metrics")
        _, addresses = self.backends.get_addresses("default", {"name": "whoami", "port": 80})
        self.assertEqual(addresses, [])

    def test_missing_port(self):
        self.add_whoami()
        with self.assertRaises(UnsupportedProtocol):
            self.backends.get_addresses("default", {"name": "whoami"})

    def test_missing_service(self):
        with self.assertRaises(BackendNotFound):
            self.backends.get_addresses("default", {"name": "whoami", "port": 80})

    def test_missing_endpoints(self):
        self.add_service()
        with self.assertRaises(BackendNotFound):
            self.backends.get_addresses("default", {"name": "whoami", "port": 80})

    def test_native_lb(self):
        self.add_service(annotations={"drycc.cc/service.nativelb": "True"})
        _, addresses = self.backends.get_addresses("default", {"name": "whoami", "port": 80})
        self.assertEqual(addresses, [BackendAddress("10.10.0.1", 80)])

    def test_native_lb_by_default(self):
        self.backends.native_lb_by_default = True
        self.add_service(cluster_ip="None")
        with self.assertRaises(BackendNotFound):
            self.backends.get_addresses("default", {"name": "whoami", "port": 80})

        self.add_service(annotations={"drycc.cc/service.nativelb": "false"})
        self.add_endpoints()
        _, addresses = self.backends.get_addresses("default", {"name": "whoami", "port": 80})
        self.assertEqual(len(addresses), 2)

    def test_http_scheme(self):
        scheme = BackendResolver.http_scheme
        self.assertEqual(scheme({"port": 80}), "http")
        self.assertEqual(scheme({"port": 443}), "https")
        self.assertEqual(scheme({"port": 8443, "name": "https-web"}), "https")
        self.assertEqual(scheme({"port": 80, "appProtocol": "kubernetes.io/h2c"}), "h2c")
        self.assertEqual(scheme({"port": 443, "appProtocol": "kubernetes.io/ws"}), "http")
        self.assertEqual(scheme({"port": 80, "appProtocol": "kubernetes.io/wss"}), "https")
        with self.assertRaises(UnsupportedProtocol):
            scheme({"port": 80, "appProtocol": "example.com/custom"})

    def test_grpc_scheme(self):
        scheme = BackendResolver.grpc_scheme
        self.assertEqual(scheme({"port": 80}), "h2c")
        self.assertEqual(scheme({"port": 443, "appProtocol": "https"}), "https")
        with self.assertRaises(UnsupportedProtocol):
            scheme({"port": 80, "appProtocol": "http"})

    def test_internal_service(self):
        self.assertTrue(is_internal_service(
            {"group": "traefik.io", "kind": "TraefikService", "name": "api@internal"}))
        self.assertFalse(is_internal_service({"name": "api@internal"}))
        self.assertFalse(is_internal_service(
            {"group": "traefik.io", "kind": "TraefikService", "name": "api@file"}))
