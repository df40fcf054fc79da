"""
Run the gateway controller, printing every new configuration as one JSON line.
"""
import argparse
import json
import logging
import signal
import sys
import threading

from kubeclient import KubeHTTPClient
from kubeclient.store import ResourceStore

from gateway import configure_logging, settings
from gateway.driver import Driver
from gateway.provider import Provider

logger = logging.getLogger('gateway')


def publish(message):
    sys.stdout.write(json.dumps(message, sort_keys=True) + '\n')
    sys.stdout.flush()


def main(argv=None):
    parser = argparse.ArgumentParser(prog='gateway', description=__doc__)
    parser.add_argument(
        '--once', action='store_true',
        help='wait for the caches to sync, publish one configuration and exit.')
    args = parser.parse_args(argv)

    configure_logging()
    client = KubeHTTPClient(settings.K8S_API_URL, settings.K8S_API_VERIFY_TLS,
                            settings.K8S_API_TOKEN)
    store = ResourceStore(
        client, namespaces=settings.WATCH_NAMESPACES, label_selector=settings.LABEL_SELECTOR,
        watch_timeout=settings.WATCH_TIMEOUT, sync_timeout=settings.SYNC_TIMEOUT,
        status_timeout=settings.STATUS_UPDATE_TIMEOUT, queue_size=settings.EVENT_QUEUE_SIZE,
        experimental_channel=settings.EXPERIMENTAL_CHANNEL)
    driver = Driver(Provider(store), store, publish)

    stop_event = threading.Event()
    if args.once:
        store.watch_all(stop_event)
        try:
            driver.reconcile()
        finally:
            store.stop()
        return 0

    def stop(signum, frame):
        logger.info("received signal %s, stopping", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, stop)
    signal.signal(signal.SIGTERM, stop)
    logger.info("starting the %s provider for %s", settings.PROVIDER_NAME,
                settings.CONTROLLER_NAME)
    driver.run(stop_event)
    return 0


if __name__ == '__main__':
    sys.exit(main())
