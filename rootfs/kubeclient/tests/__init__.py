import logging
import unittest

from kubeclient import KubeHTTPClient

K8S_API_URL = "https://kubernetes.example.com"


class TestCase(unittest.TestCase):

    def setUp(self):
        # hide any log messages less than critical
        logging.disable(logging.ERROR)
        self.client = KubeHTTPClient(K8S_API_URL, k8s_api_verify_tls=False, token="token")

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def url(self, path):
        return K8S_API_URL + path
