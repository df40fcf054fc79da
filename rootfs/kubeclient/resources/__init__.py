import json
import logging
from contextlib import closing

from kubeclient import KubeHTTPClient, get_k8s_session
from kubeclient.exceptions import KubeHTTPException, KubeWatchExpired

logger = logging.getLogger(__name__)


class ResourceRegistry(type):
    """A registry of all Resources subclassed"""
    def __init__(cls, name, bases, attrs):
        if not hasattr(cls, 'registry'):
            cls.registry = {}
        else:
            # abstract bases have no endpoint of their own
            if not attrs.get('abstract', False):
                cls.registry[name] = cls
        super(ResourceRegistry, cls).__init__(name, bases, attrs)
        cls.abstract = attrs.get('abstract', False)

    def __iter__(cls):
        return iter(cls.registry.values())


class Resource(KubeHTTPClient, metaclass=ResourceRegistry):
    abstract = True
    short_name = None
    kind = None
    namespaced = True
    has_status = False

    def __init__(self, url, k8s_api_verify_tls=True, token=None):
        self.url = url
        self.k8s_api_verify_tls = k8s_api_verify_tls
        self.token = token
        self.session = get_k8s_session(self.k8s_api_verify_tls, token)

    @property
    def plural(self):
        return self.kind.lower() + 's'

    def path(self, namespace=None, name=None, subresource=None):
        tmpl, args = "/{}", [self.plural]
        if self.namespaced and namespace:
            tmpl, args = "/namespaces/{}/{}", [namespace, self.plural]
        if name is not None:
            tmpl, args = tmpl + "/{}", args + [name]
            if subresource is not None:
                tmpl, args = tmpl + "/{}", args + [subresource]
        return self.api(tmpl, *args)

    def get(self, namespace=None, name=None, ignore_exception=False, **kwargs):
        """
        Fetch a single object or a list of objects
        """
        url = self.path(namespace, name)
        if name is not None:
            message = 'get {} {}'.format(self.kind, name)
        else:
            message = 'get {}s'.format(self.kind)

        response = self.http_get(url, params=self.query_params(**kwargs))
        if not ignore_exception and self.unhealthy(response.status_code):
            raise KubeHTTPException(response, message)

        return response

    def watch(self, namespace=None, resource_version=None, timeout=300, **kwargs):
        """
        Stream watch events of the collection, starting after resource_version.

        Yields decoded events shaped {"type": ..., "object": ...}.
        """
        params = self.query_params(resource_version=resource_version, **kwargs)
        params.update({
            'watch': 'true',
            'timeoutSeconds': timeout,
            'allowWatchBookmarks': 'true',
        })
        response = self.http_get(
            self.path(namespace), params=params, stream=True, timeout=(10, timeout + 10))
        if self.unhealthy(response.status_code):
            if response.status_code == 410:
                raise KubeWatchExpired('watch {}s expired'.format(self.kind))
            raise KubeHTTPException(response, 'watch {}s', self.kind)

        with closing(response):
            for line in response.iter_lines():
                if not line:
                    continue
                event = json.loads(line)
                if not isinstance(event, dict):
                    logger.warning("watch %ss returned a malformed event: %r", self.kind, event)
                    continue
                if event.get('type') == 'ERROR':
                    status = event.get('object', {})
                    if status.get('code') == 410:
                        raise KubeWatchExpired(status.get('message', 'watch expired'))
                    logger.warning("watch %ss returned an error: %s",
                                   self.kind, status.get('message'))
                    continue
                yield event

    def update_status(self, namespace, name, data, timeout=None):
        if not self.has_status:
            raise NotImplementedError('{} has no status subresource'.format(self.kind))
        url = self.path(namespace, name, 'status')
        response = self.http_put(url, json=data, timeout=timeout)
        if self.unhealthy(response.status_code):
            raise KubeHTTPException(response, 'update {} "{}" status', self.kind, name)
        return response


from .gateway import *  # noqa
from .namespace import *  # noqa
from .secret import *  # noqa
from .service import *  # noqa
