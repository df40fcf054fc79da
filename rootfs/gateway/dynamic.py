"""
The dynamic configuration handed to the proxy.

It is a plain dict partitioned by protocol, serializable as is:

    {
        "http": {"routers": {}, "middlewares": {}, "services": {}},
        "tcp": {"routers": {}, "middlewares": {}, "services": {}},
        "udp": {"routers": {}, "services": {}},
        "tls": {"certificates": []},
    }
"""
import hashlib
import json

# answered by weighted members which cannot be resolved
HTTP_UNAVAILABLE_STATUS = 500
GRPC_UNAVAILABLE_STATUS = {"code": 14, "msg": "Service Unavailable"}


def new_configuration():
    return {
        "http": {"routers": {}, "middlewares": {}, "services": {}},
        "tcp": {"routers": {}, "middlewares": {}, "services": {}},
        "udp": {"routers": {}, "services": {}},
        "tls": {"certificates": []},
    }


def merge_configuration(source, destination):
    """Add the routers, middlewares and services of source to destination."""
    for protocol in ("http", "tcp", "udp"):
        for section, items in source.get(protocol, {}).items():
            destination[protocol].setdefault(section, {}).update(items)
    for certificate in source.get("tls", {}).get("certificates", []):
        if certificate not in destination["tls"]["certificates"]:
            destination["tls"]["certificates"].append(certificate)
    return destination


def configuration_hash(configuration):
    data = json.dumps(configuration, sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(data.encode('utf-8')).hexdigest()


def weighted(members):
    return {"weighted": {"services": members}}


def weighted_member(name, weight, status=None, grpc_status=None):
    member = {"name": name, "weight": weight}
    if status is not None:
        member["status"] = status
    if grpc_status is not None:
        member["grpcStatus"] = dict(grpc_status)
    return member


def http_load_balancer(urls):
    return {
        "loadBalancer": {
            "servers": [{"url": url} for url in urls],
            "passHostHeader": True,
        }
    }


def l4_load_balancer(addresses):
    return {
        "loadBalancer": {
            "servers": [{"address": address} for address in addresses],
        }
    }
