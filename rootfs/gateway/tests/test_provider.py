from gateway.dynamic import configuration_hash
from gateway.tests import HTTP_LISTENER, TestCase


class ProviderTest(TestCase):

    def setUp(self):
        super().setUp()
        self.add_gateway_class()
        self.add_gateway([HTTP_LISTENER])
        self.add_whoami()

    def add_routes(self, names):
        for name in names:
            self.add_route("HTTPRoute", {
                "hostnames": ["{}.example.com".format(name)],
                "rules": [{"backendRefs": [{"name": "whoami", "port": 80}]}],
            }, name=name)

    def test_empty(self):
        self.store = type(self.store)()
        configuration = self.provider().load_configuration()
        self.assertEqual(configuration, {
            "http": {"routers": {}, "middlewares": {}, "services": {}},
            "tcp": {"routers": {}, "middlewares": {}, "services": {}},
            "udp": {"routers": {}, "services": {}},
            "tls": {"certificates": []},
        })

    def test_deterministic(self):
        self.add_routes(["a", "b", "c"])
        first = self.provider().load_configuration()
        second = self.provider().load_configuration()
        self.assertEqual(first, second)
        self.assertEqual(configuration_hash(first), configuration_hash(second))

    def test_insertion_order(self):
        self.add_routes(["a", "b", "c"])
        first = configuration_hash(self.provider().load_configuration())

        self.setUp()
        self.add_routes(["c", "a", "b"])
        self.assertEqual(configuration_hash(self.provider().load_configuration()), first)

    def test_hash_changes(self):
        self.add_routes(["a"])
        first = configuration_hash(self.provider().load_configuration())
        self.add_routes(["b"])
        self.assertNotEqual(configuration_hash(self.provider().load_configuration()), first)

    def test_gateway_classes(self):
        self.add_gateway_class(name="other", controller_name="example.com/controller")
        self.assertEqual(self.provider().gateway_classes(), {"drycc"})
        self.assertEqual(len(self.store.statuses("GatewayClass")), 1)

    def test_several_gateways(self):
        self.add_gateway([dict(HTTP_LISTENER, hostname="*.example.com")], name="second")
        self.add_route("HTTPRoute", {
            "parentRefs": [{"name": "gateway"}, {"name": "second"}],
            "hostnames": ["foo.example.com"],
            "rules": [{"backendRefs": [{"name": "whoami", "port": 80}]}],
        })
        configuration = self.provider().load_configuration()
        names = sorted(configuration["http"]["routers"])
        self.assertEqual(len(names), 2)
        self.assertTrue(names[0].startswith("httproute-default-route-gw-default-gateway-ep-web-0-"))
        self.assertTrue(names[1].startswith("httproute-default-route-gw-default-second-ep-web-0-"))
        parents = self.last_status("HTTPRoute", "route")["parents"]
        self.assertEqual([parent["parentRef"]["name"] for parent in parents], ["gateway", "second"])

    def test_extension_registry(self):
        provider = self.provider()
        provider.register_backend(
            "example.com", "Bucket", lambda name, namespace: (name, {"loadBalancer": {}}))
        self.assertIs(provider.backends.registry, provider.registry)
        self.assertEqual(
            provider.registry.backend_builder("example.com", "Bucket")("b", "default"),
            ("b", {"loadBalancer": {}}))

    def test_no_status_address(self):
        self.provider(status_address={}).load_configuration()
        self.assertEqual(self.last_status("Gateway", "gateway")["addresses"], [])

    def test_missing_status_service(self):
        self.provider(status_address={
            "service": {"name": "traefik", "namespace": "kube-system"},
        }).load_configuration()
        self.assertEqual(self.last_status("Gateway", "gateway")["addresses"], [])
