"""
Router rules and priorities synthesized from route matches.

Priorities are additive. The path tier always outweighs the sum of the other
bonuses, so for routes sharing a listener an exact path wins over any prefix,
a non-root prefix over any regular expression and those over the root prefix:

    exact path       1000000
    prefix path       200000 + 100 per character
    regex path         10000 + 100 per character
    root prefix            1

On top of it come the method (1000), header (100 exact, 50 regex), query
parameter (10 exact, 5 regex) and hostname (its length) bonuses.
"""
import re

PRIORITY_EXACT_PATH = 1000000
PRIORITY_PREFIX_PATH = 200000
PRIORITY_REGEX_PATH = 10000
PRIORITY_ROOT_PATH = 1
PRIORITY_PER_CHARACTER = 100
PRIORITY_METHOD = 1000
PRIORITY_EXACT_HEADER = 100
PRIORITY_REGEX_HEADER = 50
PRIORITY_EXACT_QUERY = 10
PRIORITY_REGEX_QUERY = 5

UNIVERSAL_SNI_RULE = "HostSNI(`*`)"
ROOT_PATH_RULE = "PathPrefix(`/`)"


def is_wildcard(hostname):
    return hostname.startswith("*.")


def find_matching_hostname(hostname1, hostname2):
    """
    Return the narrowest of two hostnames when one covers the other, else None.
    """
    if hostname1 == hostname2:
        return hostname1
    if not is_wildcard(hostname1) and not is_wildcard(hostname2):
        return None
    suffix1 = hostname1[1:] if is_wildcard(hostname1) else hostname1
    suffix2 = hostname2[1:] if is_wildcard(hostname2) else hostname2
    # hostname1 is the broader one from here on
    if len(suffix1) > len(suffix2):
        hostname1, hostname2, suffix1, suffix2 = hostname2, hostname1, suffix2, suffix1
    if not is_wildcard(hostname1):
        return None
    if len(suffix2) > len(suffix1) and suffix2.endswith(suffix1):
        return hostname2
    return None


def find_matching_hostnames(listener_hostname, route_hostnames):
    """
    Intersect a listener hostname with the hostnames of a route.

    Returns (hostnames, ok). An empty list means any hostname.
    """
    route_hostnames = route_hostnames or []
    if not listener_hostname:
        return list(route_hostnames), True
    if not route_hostnames:
        return [listener_hostname], True
    matches = []
    for route_hostname in route_hostnames:
        match = find_matching_hostname(listener_hostname, route_hostname)
        if match is not None and match not in matches:
            matches.append(match)
    return matches, bool(matches)


def hostname_regexp(hostname):
    return "^[a-z0-9-\\.]+" + re.escape(hostname[1:]) + "$"


def unique(values):
    result = []
    for value in values:
        if value not in result:
            result.append(value)
    return result


def host_rule(hostnames):
    rules, priority = [], 0
    for hostname in unique(hostnames or []):
        if is_wildcard(hostname):
            rules.append("HostRegexp(`{}`)".format(hostname_regexp(hostname)))
        else:
            rules.append("Host(`{}`)".format(hostname))
        priority = max(priority, len(hostname))
    if not rules:
        return "", 0
    if len(rules) == 1:
        return rules[0], priority
    return "(" + " || ".join(rules) + ")", priority


def path_rule(path):
    path = path or {}
    path_type = path.get("type") or "PathPrefix"
    value = path.get("value") or "/"
    if path_type == "Exact":
        return "Path(`{}`)".format(value), PRIORITY_EXACT_PATH
    if path_type == "RegularExpression":
        return "PathRegexp(`{}`)".format(value), \
            PRIORITY_REGEX_PATH + len(value) * PRIORITY_PER_CHARACTER
    if value == "/":
        return ROOT_PATH_RULE, PRIORITY_ROOT_PATH
    trimmed = value.rstrip("/")
    rule = "(Path(`{0}`) || PathPrefix(`{0}/`))".format(trimmed)
    return rule, PRIORITY_PREFIX_PATH + len(value) * PRIORITY_PER_CHARACTER


def header_rules(headers, exact, regexp, exact_bonus, regexp_bonus):
    rules, priority = [], 0
    for header in headers or []:
        if header.get("type") == "RegularExpression":
            rules.append("{}(`{}`, `{}`)".format(regexp, header["name"], header["value"]))
            priority += regexp_bonus
        else:
            rules.append("{}(`{}`, `{}`)".format(exact, header["name"], header["value"]))
            priority += exact_bonus
    return rules, priority


def http_match_rule(hostnames, match):
    """Return the rule and priority of one HTTPRouteMatch."""
    rule, priority = host_rule(hostnames)
    rules = [rule] if rule else []

    rule, path_priority = path_rule(match.get("path"))
    rules.append(rule)
    priority += path_priority

    if match.get("method"):
        rules.append("Method(`{}`)".format(match["method"]))
        priority += PRIORITY_METHOD

    header_match, header_priority = header_rules(
        match.get("headers"), "Header", "HeaderRegexp",
        PRIORITY_EXACT_HEADER, PRIORITY_REGEX_HEADER)
    query_match, query_priority = header_rules(
        match.get("queryParams"), "Query", "QueryRegexp",
        PRIORITY_EXACT_QUERY, PRIORITY_REGEX_QUERY)
    rules.extend(header_match + query_match)
    priority += header_priority + query_priority
    return " && ".join(rules), priority


def grpc_method_rule(method):
    method = method or {}
    service, name = method.get("service"), method.get("method")
    if not service and not name:
        return ROOT_PATH_RULE, PRIORITY_ROOT_PATH
    if method.get("type") == "RegularExpression":
        value = "^/{}/{}$".format(service or "[^/]+", name or "[^/]+")
        return "PathRegexp(`{}`)".format(value), \
            PRIORITY_REGEX_PATH + len(value) * PRIORITY_PER_CHARACTER
    if service and name:
        return "Path(`/{}/{}`)".format(service, name), PRIORITY_EXACT_PATH
    if service:
        value = "/{}/".format(service)
        return "PathPrefix(`{}`)".format(value), \
            PRIORITY_PREFIX_PATH + len(value) * PRIORITY_PER_CHARACTER
    value = "^/[^/]+/{}$".format(re.escape(name))
    return "PathRegexp(`{}`)".format(value), \
        PRIORITY_REGEX_PATH + len(value) * PRIORITY_PER_CHARACTER


def grpc_match_rule(hostnames, match):
    """Return the rule and priority of one GRPCRouteMatch."""
    rule, priority = host_rule(hostnames)
    rules = [rule] if rule else []

    rule, method_priority = grpc_method_rule(match.get("method"))
    rules.append(rule)
    priority += method_priority

    header_match, header_priority = header_rules(
        match.get("headers"), "Header", "HeaderRegexp",
        PRIORITY_EXACT_HEADER, PRIORITY_REGEX_HEADER)
    rules.extend(header_match)
    priority += header_priority
    return " && ".join(rules), priority


def sni_rule(hostnames):
    """Return the HostSNI rule and priority matching any of hostnames."""
    rules, priority = [], 0
    for hostname in unique(hostnames or []):
        if not hostname or hostname == "*":
            continue
        if is_wildcard(hostname):
            rules.append("HostSNIRegexp(`{}`)".format(hostname_regexp(hostname)))
        else:
            rules.append("HostSNI(`{}`)".format(hostname))
        priority += len(hostname)
    if not rules:
        return UNIVERSAL_SNI_RULE, 0
    return " || ".join(rules), priority
