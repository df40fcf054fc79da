"""
Translation of route filters into proxy middlewares.
"""
import logging

from gateway.exceptions import FilterError, GatewayError

logger = logging.getLogger(__name__)

FILTER_REQUEST_HEADER_MODIFIER = "RequestHeaderModifier"
FILTER_RESPONSE_HEADER_MODIFIER = "ResponseHeaderModifier"
FILTER_REQUEST_REDIRECT = "RequestRedirect"
FILTER_URL_REWRITE = "URLRewrite"
FILTER_EXTENSION_REF = "ExtensionRef"

PATH_REPLACE_FULL = "ReplaceFullPath"
PATH_REPLACE_PREFIX = "ReplacePrefixMatch"

GRPC_FILTERS = (
    FILTER_REQUEST_HEADER_MODIFIER, FILTER_RESPONSE_HEADER_MODIFIER, FILTER_EXTENSION_REF,
)


def header_modifier(modifier):
    return {
        "set": {header["name"]: header["value"] for header in modifier.get("set") or []},
        "add": {header["name"]: header["value"] for header in modifier.get("add") or []},
        "remove": list(modifier.get("remove") or []),
    }


def path_modifier(path, data):
    if not path:
        return data
    if path.get("type") == PATH_REPLACE_FULL:
        data["path"] = path.get("replaceFullPath") or "/"
    elif path.get("type") == PATH_REPLACE_PREFIX:
        data["pathPrefix"] = path.get("replacePrefixMatch") or "/"
    else:
        raise FilterError("Unsupported path modifier type {}".format(path.get("type")))
    return data


def request_redirect(redirect):
    data = {"statusCode": redirect.get("statusCode") or 302}
    for field in ("scheme", "hostname", "port"):
        if redirect.get(field) is not None:
            data[field] = redirect[field]
    return path_modifier(redirect.get("path"), data)


def url_rewrite(rewrite):
    if not rewrite or (not rewrite.get("hostname") and not rewrite.get("path")):
        raise FilterError("URLRewrite filter requires a hostname or a path")
    data = {}
    if rewrite.get("hostname"):
        data["hostname"] = rewrite["hostname"]
    return path_modifier(rewrite.get("path"), data)


class MiddlewareBuilder(object):
    """
    Build the middlewares of a router from the filters of a route rule.

    Middlewares are named ``<router>-<filtertype>-<index>``, the index being
    the position of the filter in the rule.
    """

    def __init__(self, registry, supported_filters=None):
        self.registry = registry
        self.supported_filters = supported_filters

    def build(self, namespace, router_name, filters):
        """
        Return (names, middlewares), names keeping the filter order.

        Raises a GatewayError for the first filter that cannot be translated.
        """
        names, middlewares = [], {}
        for index, route_filter in enumerate(filters or []):
            filter_type = route_filter.get("type")
            if self.supported_filters is not None and filter_type not in self.supported_filters:
                raise FilterError("Unsupported filter {}".format(filter_type))
            if filter_type == FILTER_EXTENSION_REF:
                name, middleware = self.extension(namespace, route_filter.get("extensionRef"))
                names.append(name)
                if middleware is not None:
                    middlewares[name] = middleware
                continue

            name = "{}-{}-{}".format(router_name, (filter_type or "").lower(), index)
            middlewares[name] = self.middleware(filter_type, route_filter)
            names.append(name)
        return names, middlewares

    def middleware(self, filter_type, route_filter):
        if filter_type == FILTER_REQUEST_HEADER_MODIFIER:
            return {"requestHeaderModifier": header_modifier(
                route_filter.get("requestHeaderModifier") or {})}
        if filter_type == FILTER_RESPONSE_HEADER_MODIFIER:
            return {"responseHeaderModifier": header_modifier(
                route_filter.get("responseHeaderModifier") or {})}
        if filter_type == FILTER_REQUEST_REDIRECT:
            return {"requestRedirect": request_redirect(
                route_filter.get("requestRedirect") or {})}
        if filter_type == FILTER_URL_REWRITE:
            return {"urlRewrite": url_rewrite(route_filter.get("urlRewrite"))}
        raise FilterError("Unsupported filter {}".format(filter_type))

    def extension(self, namespace, ref):
        if not ref:
            raise FilterError("ExtensionRef filter requires an extensionRef")
        builder = self.registry.filter_builder(ref.get("group"), ref.get("kind"))
        try:
            return builder(ref["name"], namespace)
        except GatewayError:
            raise
        except Exception as e:
            logger.error("building the %s/%s filter %s failed: %s",
                         ref.get("group"), ref.get("kind"), ref.get("name"), e)
            raise FilterError("Cannot build filter {}: {}".format(ref.get("name"), e))
