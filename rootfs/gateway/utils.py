import hashlib
import re

import idna
import jsonschema

from gateway.exceptions import ValidationError


NAME_PARTS = re.compile(r'[^\W_]+')


def normalize(name):
    """Join the alphanumeric runs of name with dashes."""
    return '-'.join(NAME_PARTS.findall(name))


def short_hash(value, length=10):
    return hashlib.sha256(value.encode('utf-8')).hexdigest()[:length]


def make_router_name(rule, route_key):
    return "{}-{}".format(route_key, short_hash(rule))


def join_host_port(host, port):
    if ':' in host:
        return '[{}]:{}'.format(host, port)
    return '{}:{}'.format(host, port)


def to_ascii_hostname(hostname):
    """
    Return the lower-cased ASCII form of hostname, keeping a leading wildcard label.
    """
    if not hostname:
        return hostname
    prefix = ''
    if hostname.startswith('*.'):
        prefix, hostname = '*.', hostname[2:]
    try:
        return prefix + idna.encode(hostname, uts46=True).decode('ascii')
    except idna.IDNAError as e:
        raise ValidationError("invalid hostname {}: {}".format(hostname, e))


def validate_json(value, schema, raise_exception=ValidationError):
    if value is not None:
        try:
            jsonschema.validate(value, schema)
        except jsonschema.ValidationError as e:
            raise raise_exception("could not validate {}: {}".format(
                '/'.join(str(p) for p in e.absolute_path) or 'spec', e.message))
    return value
