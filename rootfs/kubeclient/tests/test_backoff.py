import unittest

from kubeclient.backoff import ExponentialBackOff


class ExponentialBackOffTest(unittest.TestCase):

    def test_delays(self):
        backoff = ExponentialBackOff(randomization_factor=0)
        delays = [backoff.next_delay() for _ in range(20)]
        self.assertEqual(delays[:3], [0.5, 0.75, 1.125])
        self.assertEqual(delays[-1], 60)
        backoff.reset()
        self.assertEqual(backoff.next_delay(), 0.5)

    def test_randomization(self):
        backoff = ExponentialBackOff()
        for _ in range(10):
            interval = backoff.current_interval
            delay = backoff.next_delay()
            self.assertGreaterEqual(delay, interval * 0.5)
            self.assertLessEqual(delay, interval * 1.5)
