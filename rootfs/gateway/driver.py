"""
The reconciliation loop of the gateway controller.
"""
import logging
import queue
import threading

from kubeclient.backoff import ExponentialBackOff
from kubeclient.exceptions import KubeException

from gateway import settings
from gateway.dynamic import configuration_hash

logger = logging.getLogger(__name__)

# seconds
POLL_INTERVAL = 1
RETRY_DELAY = 1


def throttle_events(events, duration, stop_event):
    """
    Return a single slot queue fed from events.

    Events arriving while the slot is taken are dropped.
    """
    throttled = queue.Queue(maxsize=1)

    def forward():
        while not stop_event.is_set():
            try:
                event = events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                throttled.put_nowait(event)
            except queue.Full:
                pass

    if duration > 0:
        threading.Thread(target=forward, name='throttle', daemon=True).start()
        return throttled
    return events


def drain(events):
    while True:
        try:
            events.get_nowait()
        except queue.Empty:
            return


class Driver(object):
    """
    Turns watch events into configurations for the proxy.

    ``publish`` is called with a message holding the provider name and the
    configuration, only when the configuration changed.
    """

    def __init__(self, provider, store, publish, throttle_duration=None,
                 provider_name=settings.PROVIDER_NAME):
        self.provider = provider
        self.store = store
        self.publish = publish
        self.throttle_duration = settings.THROTTLE_DURATION \
            if throttle_duration is None else throttle_duration
        self.provider_name = provider_name
        self.last_hash = None

    def run(self, stop_event):
        backoff = ExponentialBackOff()
        delay = RETRY_DELAY
        try:
            while not stop_event.is_set():
                try:
                    events = self.store.watch_all(stop_event)
                except KubeException as e:
                    logger.error("cannot watch the gateway resources, retrying in %.2fs: %s",
                                 delay, e)
                    if stop_event.wait(delay):
                        break
                    delay = backoff.next_delay()
                    continue
                backoff.reset()
                delay = RETRY_DELAY
                self.consume(events, stop_event)
        finally:
            self.store.stop()

    def consume(self, events, stop_event):
        events = throttle_events(events, self.throttle_duration, stop_event)
        while not stop_event.is_set():
            try:
                events.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            if self.throttle_duration > 0:
                # the pass after the interval sees every change made during it
                if stop_event.wait(self.throttle_duration):
                    return
                drain(events)
            try:
                self.reconcile()
            except Exception:
                # the next event starts a new pass
                logger.exception("cannot load the configuration of provider %s",
                                 self.provider_name)

    def reconcile(self):
        """Compute the configuration, publish it when it changed."""
        configuration = self.provider.load_configuration()
        digest = configuration_hash(configuration)
        if digest == self.last_hash:
            logger.debug("skipping unchanged configuration from provider %s", self.provider_name)
            return False
        self.last_hash = digest
        self.publish({"providerName": self.provider_name, "configuration": configuration})
        return True
