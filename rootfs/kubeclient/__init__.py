from collections import OrderedDict
import logging
import os
import requests
import requests.exceptions
from requests_toolbelt import user_agent
from urllib.parse import urljoin

from gateway import __version__ as drycc_version
from kubeclient.exceptions import KubeException


logger = logging.getLogger(__name__)
session = None

SERVICE_ACCOUNT_PATH = '/var/run/secrets/kubernetes.io/serviceaccount'


def get_k8s_session(k8s_api_verify_tls, token=None):
    global session
    if session is None:
        token_path = os.path.join(SERVICE_ACCOUNT_PATH, 'token')
        if token is None and os.path.exists(token_path):
            with open(token_path) as token_file:
                token = token_file.read()
        session = requests.Session()
        session.headers = {
            'Content-Type': 'application/json',
            'User-Agent': user_agent('Drycc Gateway', drycc_version)
        }
        if token:
            session.headers['Authorization'] = 'Bearer ' + token
        if k8s_api_verify_tls:
            ca_path = os.path.join(SERVICE_ACCOUNT_PATH, 'ca.crt')
            session.verify = ca_path if os.path.exists(ca_path) else True
        else:
            session.verify = False
    return session


class KubeHTTPClient(object):
    api_version = 'v1'
    api_prefix = 'api'
    # ISO-8601 which is used by kubernetes
    DATETIME_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

    def __init__(self, url, k8s_api_verify_tls=True, token=None):
        self.url = url
        self.k8s_api_verify_tls = k8s_api_verify_tls
        self.token = token
        self.session = get_k8s_session(self.k8s_api_verify_tls, token)
        self.resource_mapping = OrderedDict()

        # map the various k8s Resources to an internal property
        from kubeclient.resources import Resource  # lazy load
        for res in Resource:
            name = str(res.__name__).lower()  # singular
            resource = res(self.url, self.k8s_api_verify_tls, self.token)
            component = resource.plural
            if component in self.resource_mapping:
                continue
            self.resource_mapping[component] = resource
            # map singular Resource name to the plural one
            if name != component:
                self.resource_mapping[name] = component
            if res.short_name is not None:
                self.resource_mapping[str(res.short_name).lower()] = component

    def api(self, tmpl, *args):
        """Return a fully-qualified Kubernetes API URL from a string template with args."""
        return "/{}/{}".format(self.api_prefix, self.api_version) + tmpl.format(*args)

    def __getattr__(self, name):
        mapping = self.__dict__.get('resource_mapping', {})
        if name in mapping:
            component = mapping[name]
            if type(component) is not str:
                return component
            return mapping[component]

        return object.__getattribute__(self, name)

    @staticmethod
    def unhealthy(status_code):
        return not 200 <= status_code <= 299

    @staticmethod
    def query_params(labels=None, fields=None, resource_version=None, pretty=False):
        query = {}

        # labels and fields are encoded slightly differently than python-requests can do
        if isinstance(labels, str):
            if labels:
                query['labelSelector'] = labels
        elif labels:
            selectors = []
            for key, value in labels.items():
                # http://kubernetes.io/docs/user-guide/labels/#set-based-requirement
                if '__notin' in key:
                    key = key.replace('__notin', '')
                    selectors.append('{} notin({})'.format(key, ','.join(value)))
                elif '__in' in key or isinstance(value, list):
                    key = key.replace('__in', '')
                    selectors.append('{} in({})'.format(key, ','.join(value)))
                elif '__ne' in key:
                    key = key.replace('__ne', '')
                    selectors.append('{}!={}'.format(key, value))
                elif value is None:
                    selectors.append(key)
                elif isinstance(value, str):
                    selectors.append('{}={}'.format(key, value))

            query['labelSelector'] = ','.join(selectors)

        if fields:
            fields = ['{}={}'.format(key, value) for key, value in fields.items()]
            query['fieldSelector'] = ','.join(fields)

        # Which resource version to start from. Otherwise starts from the beginning
        if resource_version:
            query['resourceVersion'] = resource_version

        if pretty:
            query['pretty'] = pretty

        return query

    def http_get(self, path, params=None, **kwargs):
        """
        Make a GET request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.get(url, params=params, **kwargs)
        except requests.exceptions.ConnectionError as err:
            # reraise as KubeException, but log stacktrace.
            message = "There was a problem retrieving data from " \
                      "the Kubernetes API server. URL: {}, params: {}".format(url, params)
            logger.error(message)
            raise KubeException(message) from err

        return response

    def http_put(self, path, data=None, json=None, **kwargs):
        """
        Make a PUT request to the k8s server.
        """
        try:
            url = urljoin(self.url, path)
            response = self.session.put(url, data=data, json=json, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as err:
            # reraise as KubeException, but log stacktrace.
            message = "There was a problem putting data to " \
                      "the Kubernetes API server. URL: {}, " \
                      "data: {}, json: {}".format(url, data, json)
            logger.error(message)
            raise KubeException(message) from err

        return response
