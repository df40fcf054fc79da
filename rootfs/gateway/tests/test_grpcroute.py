from gateway.tests import HTTP_LISTENER, TestCase


class GRPCRouteTest(TestCase):

    def setUp(self):
        super().setUp()
        self.add_gateway_class()
        self.add_gateway([HTTP_LISTENER])
        self.add_whoami()

    def test_service_and_method(self):
        self.add_route("GRPCRoute", {
            "hostnames": ["grpc.example.com"],
            "rules": [{
                "matches": [{"method": {"service": "helloworld.Greeter", "method": "SayHello"}}],
                "backendRefs": [{"name": "whoami", "port": 80}],
            }],
        })
        configuration = self.provider().load_configuration()

        name, router = list(configuration["http"]["routers"].items())[0]
        self.assertTrue(name.startswith("grpcroute-default-route-gw-default-gateway-ep-web-0-"))
        self.assertEqual(
            router["rule"],
            "Host(`grpc.example.com`) && Path(`/helloworld.Greeter/SayHello`)")
        self.assertEqual(router["priority"], len("grpc.example.com") + 1000000 + 1)
        services = configuration["http"]["services"]
        self.assertEqual(services[router["service"]], {
            "weighted": {"services": [{"name": "default-whoami-80-grpc", "weight": 1}]}
        })
        self.assertEqual(services["default-whoami-80-grpc"]["loadBalancer"]["servers"], [
            {"url": "h2c://10.42.0.1:8080"},
            {"url": "h2c://10.42.0.2:8080"},
        ])
        parent = self.route_parent("GRPCRoute")
        self.assertEqual(self.condition(parent["conditions"], "Accepted")["status"], "True")
        self.assertEqual(self.condition(parent["conditions"], "ResolvedRefs")["status"], "True")

    def test_method_matches(self):
        self.add_route("GRPCRoute", {"rules": [{
            "matches": [
                {"method": {"service": "helloworld.Greeter"}},
                {"method": {"method": "SayHello"}},
                {"method": {"type": "RegularExpression", "service": "helloworld\\..*"}},
                {},
            ],
            "backendRefs": [{"name": "whoami", "port": 80}],
        }]})
        configuration = self.provider().load_configuration()
        rules = sorted(router["rule"] for router in configuration["http"]["routers"].values())
        self.assertEqual(rules, sorted([
            "PathPrefix(`/helloworld.Greeter/`)",
            "PathRegexp(`^/[^/]+/SayHello$`)",
            "PathRegexp(`^/helloworld\\..*/[^/]+$`)",
            "PathPrefix(`/`)",
        ]))

    def test_header_match(self):
        self.add_route("GRPCRoute", {"rules": [{
            "matches": [{
                "method": {"service": "helloworld.Greeter"},
                "headers": [{"name": "version", "value": "2"}],
            }],
            "backendRefs": [{"name": "whoami", "port": 80}],
        }]})
        configuration = self.provider().load_configuration()
        router = list(configuration["http"]["routers"].values())[0]
        self.assertEqual(
            router["rule"], "PathPrefix(`/helloworld.Greeter/`) && Header(`version`, `2`)")

    def test_unavailable_backend(self):
        self.add_route("GRPCRoute", {"rules": [{"backendRefs": [{"name": "missing", "port": 80}]}]})
        configuration = self.provider().load_configuration()
        router = list(configuration["http"]["routers"].values())[0]
        self.assertEqual(configuration["http"]["services"][router["service"]], {
            "weighted": {"services": [{
                "name": "invalid-grpcroute-backend",
                "weight": 1,
                "grpcStatus": {"code": 14, "msg": "Service Unavailable"},
            }]}
        })
        resolved_refs = self.condition(self.route_parent("GRPCRoute")["conditions"], "ResolvedRefs")
        self.assertEqual(resolved_refs["reason"], "BackendNotFound")

    def test_only_services(self):
        self.add_route("GRPCRoute", {"rules": [{"backendRefs": [
            {"group": "traefik.io", "kind": "TraefikService", "name": "whoami@file"},
        ]}]})
        self.provider().load_configuration()
        resolved_refs = self.condition(self.route_parent("GRPCRoute")["conditions"], "ResolvedRefs")
        self.assertEqual(resolved_refs["reason"], "InvalidKind")

    def test_unsupported_filter(self):
        self.add_route("GRPCRoute", {"rules": [{
            "filters": [{"type": "RequestRedirect", "requestRedirect": {"scheme": "https"}}],
            "backendRefs": [{"name": "whoami", "port": 80}],
        }]})
        configuration = self.provider().load_configuration()
        name, router = list(configuration["http"]["routers"].items())[0]
        self.assertEqual(configuration["http"]["services"][router["service"]], {
            "weighted": {"services": [{
                "name": "invalid-grpcroute-filter",
                "weight": 1,
                "grpcStatus": {"code": 14, "msg": "Service Unavailable"},
            }]}
        })

    def test_header_filter(self):
        self.add_route("GRPCRoute", {"rules": [{
            "filters": [{
                "type": "ResponseHeaderModifier",
                "responseHeaderModifier": {"set": [{"name": "X-Served-By", "value": "grpc"}]},
            }],
            "backendRefs": [{"name": "whoami", "port": 80}],
        }]})
        configuration = self.provider().load_configuration()
        name, router = list(configuration["http"]["routers"].items())[0]
        self.assertEqual(router["middlewares"], [name + "-responseheadermodifier-0"])

    def test_app_protocol(self):
        self.add_service(ports=[{
            "name": "web", "port": 80, "protocol": "TCP", "appProtocol": "https"}])
        self.add_route("GRPCRoute", {"rules": [{"backendRefs": [{"name": "whoami", "port": 80}]}]})
        configuration = self.provider().load_configuration()
        self.assertEqual(
            configuration["http"]["services"]["default-whoami-80-grpc"]["loadBalancer"]["servers"],
            [{"url": "https://10.42.0.1:8080"}, {"url": "https://10.42.0.2:8080"}])
