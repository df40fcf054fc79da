from unittest import mock

from kubeclient.exceptions import KubeException

from gateway import conditions
from gateway.status import StatusReconciler
from gateway.tests import CONTROLLER_NAME, HTTP_LISTENER, TestCase

T0 = "2024-01-01T00:00:00Z"
T1 = "2024-01-02T00:00:00Z"


class ConditionsTest(TestCase):

    def test_merge_keeps_transition_time(self):
        existing = [conditions.new_condition("Accepted", "True", "Accepted", "", 1, T0)]
        merged = conditions.merge_conditions(
            existing, [conditions.new_condition("Accepted", "True", "Accepted", "ok", 2, T1)])
        self.assertEqual(merged[0]["lastTransitionTime"], T0)
        self.assertEqual(merged[0]["message"], "ok")
        self.assertEqual(merged[0]["observedGeneration"], 2)

    def test_merge_status_change(self):
        existing = [conditions.new_condition("Accepted", "True", "Accepted", "", 1, T0)]
        merged = conditions.merge_conditions(
            existing, [conditions.new_condition("Accepted", "False", "Invalid", "", 1, T1)])
        self.assertEqual(merged[0]["lastTransitionTime"], T1)
        self.assertEqual(merged[0]["status"], "False")

    def test_merge_is_idempotent(self):
        existing = [
            conditions.new_condition("Accepted", "True", "Accepted", "", 1, T0),
            conditions.new_condition("Programmed", "False", "Invalid", "", 1, T0),
        ]
        new = [conditions.new_condition("Programmed", "True", "Programmed", "", 1, T1)]
        once = conditions.merge_conditions(existing, new)
        twice = conditions.merge_conditions(once, new)
        self.assertEqual(once, twice)
        self.assertEqual(len(once), 2)

    def test_replace_drops_missing_types(self):
        existing = [
            conditions.new_condition("Accepted", "True", "Accepted", "", 1, T0),
            conditions.new_condition("Conflicted", "True", "DuplicateListener", "", 1, T0),
        ]
        replaced = conditions.replace_conditions(
            existing, [conditions.new_condition("Accepted", "True", "Accepted", "", 1, T1)])
        self.assertEqual([condition["type"] for condition in replaced], ["Accepted"])
        self.assertEqual(replaced[0]["lastTransitionTime"], T0)

    def test_conditions_equal(self):
        first = [
            conditions.new_condition("Accepted", "True", "Accepted", "", 1, T0),
            conditions.new_condition("Programmed", "True", "Programmed", "", 1, T0),
        ]
        second = [dict(condition, lastTransitionTime=T1) for condition in reversed(first)]
        self.assertTrue(conditions.conditions_equal(first, second))
        second[0]["reason"] = "Pending"
        self.assertFalse(conditions.conditions_equal(first, second))
        self.assertFalse(conditions.conditions_equal(first, first[:1]))

    def test_route_accepted_stays_true(self):
        route_conditions = [
            conditions.new_condition("Accepted", "False", "NoMatchingParent", "", 1)]
        conditions.update_route_accepted(route_conditions, "NotAllowedByListeners")
        self.assertEqual(route_conditions[0]["reason"], "NotAllowedByListeners")
        conditions.update_route_accepted(route_conditions, "Accepted")
        self.assertEqual(route_conditions[0]["status"], "True")
        conditions.update_route_accepted(route_conditions, "NoMatchingListenerHostname")
        self.assertEqual(route_conditions[0]["status"], "True")
        self.assertEqual(route_conditions[0]["reason"], "Accepted")

    def test_resolved_refs_stays_false(self):
        route_conditions = []
        failed = conditions.new_condition("ResolvedRefs", "False", "BackendNotFound", "", 1)
        resolved = conditions.new_condition("ResolvedRefs", "True", "ResolvedRefs", "", 1)
        conditions.upsert_resolved_refs(route_conditions, resolved)
        conditions.upsert_resolved_refs(route_conditions, failed)
        conditions.upsert_resolved_refs(route_conditions, resolved)
        self.assertEqual(len(route_conditions), 1)
        self.assertEqual(route_conditions[0]["reason"], "BackendNotFound")


class StatusReconcilerTest(TestCase):

    def setUp(self):
        super().setUp()
        self.status = StatusReconciler(self.store, CONTROLLER_NAME)

    def test_gateway_class(self):
        gateway_class = self.add_gateway_class()
        self.assertTrue(self.status.update_gateway_class(gateway_class))
        gateway_class = self.store.get("GatewayClass", None, "drycc")
        accepted = self.condition(gateway_class["status"]["conditions"], "Accepted")
        self.assertEqual(accepted["reason"], "Handled")
        self.assertEqual(accepted["message"], "Handled by drycc.cc/gateway-controller controller")
        self.assertFalse(self.status.update_gateway_class(gateway_class))
        self.assertEqual(len(self.store.statuses("GatewayClass")), 1)

    def test_gateway_class_keeps_other_conditions(self):
        gateway_class = self.add_gateway_class()
        gateway_class["status"] = {"conditions": [
            conditions.new_condition("SupportedVersion", "True", "SupportedVersion", "", 1, T0),
        ]}
        self.status.update_gateway_class(gateway_class)
        written = self.store.statuses("GatewayClass")[0][3]
        self.assertEqual(
            [condition["type"] for condition in written["conditions"]],
            ["SupportedVersion", "Accepted"])

    def test_write_failure(self):
        self.store.write_status = mock.Mock(side_effect=KubeException("boom"))
        self.assertFalse(self.status.update_gateway_class(self.add_gateway_class()))

    def test_missing_object(self):
        gateway_class = {"metadata": {"name": "gone", "generation": 1}, "spec": {}}
        self.assertFalse(self.status.update_gateway_class(gateway_class))

    def test_unwatched_namespace(self):
        self.store.namespaces = ["default"]
        self.add_gateway_class()
        self.add_gateway([HTTP_LISTENER], namespace="other")
        self.provider().load_configuration()
        self.assertEqual(self.store.statuses("Gateway"), [])

    def test_gateway_status_transition_time(self):
        self.add_gateway_class()
        self.add_gateway([HTTP_LISTENER])
        self.provider().load_configuration()
        gateway = self.store.get("Gateway", "default", "gateway")
        accepted = self.condition(gateway["status"]["conditions"], "Accepted")
        accepted["lastTransitionTime"] = T0

        # a listener change rewrites the status, the gateway conditions keep their time
        gateway["spec"]["listeners"].append(dict(HTTP_LISTENER, name="other", hostname="a.com"))
        self.provider().load_configuration()
        gateway = self.store.get("Gateway", "default", "gateway")
        self.assertEqual(len(gateway["status"]["listeners"]), 2)
        accepted = self.condition(gateway["status"]["conditions"], "Accepted")
        self.assertEqual(accepted["lastTransitionTime"], T0)
        self.assertEqual(len(self.store.statuses("Gateway")), 2)
