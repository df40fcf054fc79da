"""
A list+watch cache of the Kubernetes objects the gateway controller reads.
"""
import copy
import logging
import queue
import threading

from kubeclient.backoff import ExponentialBackOff
from kubeclient.exceptions import KubeException, KubeWatchExpired

logger = logging.getLogger(__name__)

ROUTE_KINDS = ('HTTPRoute', 'GRPCRoute')
EXPERIMENTAL_ROUTE_KINDS = ('TCPRoute', 'TLSRoute', 'UDPRoute')
CLUSTER_KINDS = ('GatewayClass', 'Namespace')
NAMESPACED_KINDS = ('Gateway', ) + ROUTE_KINDS + (
    'ReferenceGrant', 'Service', 'Endpoints', 'Secret')


def object_key(obj):
    metadata = obj.get('metadata', {})
    return metadata.get('namespace', ''), metadata.get('name')


class Informer(threading.Thread):
    """
    Keeps an in-memory copy of one kind of object in one namespace.

    The collection is listed first, then watched from the list resourceVersion.
    An expired watch starts over with a new list.
    """

    def __init__(self, resource, namespace=None, labels=None, on_event=None,
                 watch_timeout=300, backoff=None):
        super().__init__(daemon=True, name='informer-{}-{}'.format(
            resource.kind.lower(), namespace or 'all'))
        self.resource = resource
        self.namespace = namespace
        self.labels = labels
        self.on_event = on_event
        self.watch_timeout = watch_timeout
        self.backoff = backoff or ExponentialBackOff()
        self.items = {}
        self.lock = threading.Lock()
        self.synced = threading.Event()
        self.stopped = threading.Event()

    def stop(self):
        self.stopped.set()

    def run(self):
        while not self.stopped.is_set():
            try:
                resource_version = self.relist()
                self.synced.set()
                self.backoff.reset()
                while not self.stopped.is_set():
                    resource_version = self.watch(resource_version)
            except KubeWatchExpired as e:
                logger.info("%s, listing %ss again", e, self.resource.kind)
            except Exception as e:
                delay = self.backoff.next_delay()
                logger.exception("watching %ss failed, retrying in %.2fs: %s",
                                 self.resource.kind, delay, e)
                self.stopped.wait(delay)

    def relist(self):
        response = self.resource.get(self.namespace, labels=self.labels)
        data = response.json()
        items = {}
        for item in data.get('items') or []:
            items[object_key(item)] = item
        with self.lock:
            self.items = items
        self.notify('SYNC', None)
        return data.get('metadata', {}).get('resourceVersion')

    def watch(self, resource_version):
        for event in self.resource.watch(
                self.namespace, resource_version=resource_version,
                timeout=self.watch_timeout, labels=self.labels):
            if self.stopped.is_set():
                break
            resource_version = self.apply(event) or resource_version
        return resource_version

    def apply(self, event):
        """Apply one watch event to the cache and return its resourceVersion."""
        event_type, obj = event.get('type'), event.get('object') or {}
        if event_type in ('ADDED', 'MODIFIED'):
            with self.lock:
                self.items[object_key(obj)] = obj
            self.notify(event_type, obj)
        elif event_type == 'DELETED':
            with self.lock:
                self.items.pop(object_key(obj), None)
            self.notify(event_type, obj)
        return obj.get('metadata', {}).get('resourceVersion')

    def notify(self, event_type, obj):
        if self.on_event is not None:
            self.on_event(self.resource.kind, event_type, obj)

    def snapshot(self):
        with self.lock:
            return dict(self.items)


class ResourceStore(object):
    """
    Read access to the cached objects and write access to their status.

    Every watch notification lands in a bounded event queue, notifications
    that do not fit are dropped since readers always look at the whole cache.
    """

    def __init__(self, client=None, namespaces=None, label_selector=None, watch_timeout=300,
                 sync_timeout=60, status_timeout=5, queue_size=1, experimental_channel=False):
        self.client = client
        self.namespaces = list(namespaces or [])
        self.label_selector = label_selector
        self.watch_timeout = watch_timeout
        self.sync_timeout = sync_timeout
        self.status_timeout = status_timeout
        self.experimental_channel = experimental_channel
        self.events = queue.Queue(maxsize=queue_size)
        self.informers = {}

    def resource(self, kind):
        return getattr(self.client, kind.lower())

    def namespaced_kinds(self):
        if self.experimental_channel:
            return NAMESPACED_KINDS + EXPERIMENTAL_ROUTE_KINDS
        return NAMESPACED_KINDS

    def watch_all(self, stop_event=None):
        """
        Start watching every kind and block until all caches are synced.

        Returns the event queue, raises KubeException when the caches could not
        be synced in time.
        """
        self.stop()
        for kind in CLUSTER_KINDS:
            labels = self.label_selector if kind == 'GatewayClass' else None
            self._start_informer(kind, None, labels)
        for kind in self.namespaced_kinds():
            labels = {'owner__ne': 'helm'} if kind == 'Secret' else None
            for namespace in self.namespaces or [None]:
                self._start_informer(kind, namespace, labels)

        for informers in self.informers.values():
            for informer in informers:
                if stop_event is not None and stop_event.is_set():
                    self.stop()
                    raise KubeException('stopped before caches were synced')
                if not informer.synced.wait(self.sync_timeout):
                    self.stop()
                    raise KubeException('timed out waiting for {}s to sync'.format(
                        informer.resource.kind))
        return self.events

    def _start_informer(self, kind, namespace, labels):
        informer = Informer(
            self.resource(kind), namespace, labels=labels, on_event=self.on_event,
            watch_timeout=self.watch_timeout)
        self.informers.setdefault(kind, []).append(informer)
        informer.start()

    def stop(self):
        for informers in self.informers.values():
            for informer in informers:
                informer.stop()
        self.informers = {}

    def on_event(self, kind, event_type, obj):
        try:
            self.events.put_nowait((kind, event_type))
        except queue.Full:
            pass

    def items(self, kind):
        items = {}
        for informer in self.informers.get(kind, []):
            items.update(informer.snapshot())
        return items

    def list(self, kind, namespace=None):
        items = self.items(kind)
        return [
            items[key] for key in sorted(items)
            if namespace is None or key[0] == namespace
        ]

    def get(self, kind, namespace, name):
        return self.items(kind).get((namespace or '', name))

    def list_gateway_classes(self):
        return self.list('GatewayClass')

    def list_gateways(self):
        return self.list('Gateway')

    def list_routes(self, kind):
        return self.list(kind)

    def list_reference_grants(self, namespace):
        return self.list('ReferenceGrant', namespace)

    def list_namespaces(self):
        return self.list('Namespace')

    def get_service(self, namespace, name):
        return self.get('Service', namespace, name)

    def get_endpoints(self, namespace, name):
        return self.get('Endpoints', namespace, name)

    def get_secret(self, namespace, name):
        return self.get('Secret', namespace, name)

    def get_status(self, kind, namespace, name):
        obj = self.get(kind, namespace, name)
        return None if obj is None else obj.get('status')

    def is_watched_namespace(self, namespace):
        return not self.namespaces or namespace in self.namespaces

    def update_status(self, kind, namespace, name, status):
        """
        Replace the status of a cached object, return False when it was skipped.
        """
        if namespace and not self.is_watched_namespace(namespace):
            logger.warning("skipping status update of %s %s/%s: namespace is not watched",
                           kind, namespace, name)
            return False
        obj = self.get(kind, namespace, name)
        if obj is None:
            raise KubeException('{} {}/{} not found'.format(kind, namespace, name))
        data = copy.deepcopy(obj)
        data['status'] = status
        self.write_status(kind, namespace, name, data)
        return True

    def write_status(self, kind, namespace, name, data):
        resource = self.resource(kind)
        data.setdefault('apiVersion', resource.api_version)
        data.setdefault('kind', kind)
        resource.update_status(namespace, name, data, timeout=self.status_timeout)
