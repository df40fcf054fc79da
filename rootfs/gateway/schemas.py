# flake8: noqa
"""
JSON schemas of the Gateway API fields the gateway controller relies on.
"""

NAME_PATTERN = "^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"
GROUP_PATTERN = "^$|^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$"
KIND_PATTERN = "^[a-zA-Z]([-a-zA-Z0-9]*[a-zA-Z0-9])?$"

PORT_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "maximum": 65535,
}

HOSTNAME_SCHEMA = {
    "description": "Hostname is the fully qualified domain name of a network host, optionally prefixed with a wildcard label.",
    "type": "string",
    "minLength": 1,
    "maxLength": 253,
}

PARENT_REFS_SCHEMA = {
    "description": "ParentRefs references the resources (usually Gateways) that a Route wants to be attached to.",
    "type": "array",
    "maxItems": 32,
    "items": {
        "type": "object",
        "properties": {
            "group": {"type": "string", "maxLength": 253, "pattern": GROUP_PATTERN},
            "kind": {"type": "string", "minLength": 1, "maxLength": 63, "pattern": KIND_PATTERN},
            "namespace": {"type": "string", "minLength": 1, "maxLength": 63, "pattern": NAME_PATTERN},
            "name": {"type": "string", "minLength": 1, "maxLength": 253},
            "sectionName": {"type": "string", "minLength": 1, "maxLength": 253},
            "port": PORT_SCHEMA,
        },
        "required": ["name"],
    },
}

BACKEND_REFS_SCHEMA = {
    "description": "BackendRefs defines the backend(s) where matching requests should be sent.",
    "type": "array",
    "maxItems": 16,
    "items": {
        "type": "object",
        "properties": {
            "group": {"type": "string", "maxLength": 253, "pattern": GROUP_PATTERN},
            "kind": {"type": "string", "minLength": 1, "maxLength": 63, "pattern": KIND_PATTERN},
            "name": {"type": "string", "minLength": 1, "maxLength": 253},
            "namespace": {"type": "string", "minLength": 1, "maxLength": 63, "pattern": NAME_PATTERN},
            "port": PORT_SCHEMA,
            "weight": {"type": "integer", "minimum": 0, "maximum": 1000000},
        },
        "required": ["name"],
    },
}

HEADER_MATCHES_SCHEMA = {
    "type": "array",
    "maxItems": 16,
    "items": {
        "type": "object",
        "properties": {
            "type": {"type": "string", "enum": ["Exact", "RegularExpression"]},
            "name": {"type": "string", "minLength": 1, "maxLength": 256},
            "value": {"type": "string", "maxLength": 4096},
        },
        "required": ["name", "value"],
    },
}

HEADER_MODIFIER_SCHEMA = {
    "type": "object",
    "properties": {
        "set": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"name": {"type": "string"}, "value": {"type": "string"}},
                "required": ["name", "value"],
            },
        },
        "add": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"name": {"type": "string"}, "value": {"type": "string"}},
                "required": ["name", "value"],
            },
        },
        "remove": {"type": "array", "items": {"type": "string"}},
    },
}

PATH_MODIFIER_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["ReplaceFullPath", "ReplacePrefixMatch"]},
        "replaceFullPath": {"type": "string", "maxLength": 1024},
        "replacePrefixMatch": {"type": "string", "maxLength": 1024},
    },
    "required": ["type"],
}

LOCAL_OBJECT_REFERENCE_SCHEMA = {
    "type": "object",
    "properties": {
        "group": {"type": "string", "maxLength": 253, "pattern": GROUP_PATTERN},
        "kind": {"type": "string", "minLength": 1, "maxLength": 63},
        "name": {"type": "string", "minLength": 1, "maxLength": 253},
    },
    "required": ["group", "kind", "name"],
}

HTTP_FILTERS_SCHEMA = {
    "type": "array",
    "maxItems": 16,
    "items": {
        "type": "object",
        "properties": {
            "type": {"type": "string"},
            "requestHeaderModifier": HEADER_MODIFIER_SCHEMA,
            "responseHeaderModifier": HEADER_MODIFIER_SCHEMA,
            "requestRedirect": {
                "type": "object",
                "properties": {
                    "scheme": {"type": "string", "enum": ["http", "https"]},
                    "hostname": HOSTNAME_SCHEMA,
                    "path": PATH_MODIFIER_SCHEMA,
                    "port": PORT_SCHEMA,
                    "statusCode": {"type": "integer", "enum": [301, 302, 303, 307, 308]},
                },
            },
            "urlRewrite": {
                "type": "object",
                "properties": {
                    "hostname": HOSTNAME_SCHEMA,
                    "path": PATH_MODIFIER_SCHEMA,
                },
            },
            "extensionRef": LOCAL_OBJECT_REFERENCE_SCHEMA,
        },
        "required": ["type"],
    },
}

HTTP_ROUTE_SPEC_SCHEMA = {
    "type": "object",
    "properties": {
        "parentRefs": PARENT_REFS_SCHEMA,
        "hostnames": {"type": "array", "maxItems": 16, "items": HOSTNAME_SCHEMA},
        "rules": {
            "type": "array",
            "maxItems": 16,
            "items": {
                "type": "object",
                "properties": {
                    "matches": {
                        "type": "array",
                        "maxItems": 8,
                        "items": {
                            "type": "object",
                            "properties": {
                                "path": {
                                    "type": "object",
                                    "properties": {
                                        "type": {"type": "string", "enum": ["Exact", "PathPrefix", "RegularExpression"]},
                                        "value": {"type": "string", "maxLength": 1024},
                                    },
                                },
                                "headers": HEADER_MATCHES_SCHEMA,
                                "queryParams": HEADER_MATCHES_SCHEMA,
                                "method": {
                                    "type": "string",
                                    "enum": ["GET", "HEAD", "POST", "PUT", "DELETE", "CONNECT", "OPTIONS", "TRACE", "PATCH"],
                                },
                            },
                        },
                    },
                    "filters": HTTP_FILTERS_SCHEMA,
                    "backendRefs": BACKEND_REFS_SCHEMA,
                },
            },
        },
    },
}

GRPC_ROUTE_SPEC_SCHEMA = {
    "type": "object",
    "properties": {
        "parentRefs": PARENT_REFS_SCHEMA,
        "hostnames": {"type": "array", "maxItems": 16, "items": HOSTNAME_SCHEMA},
        "rules": {
            "type": "array",
            "maxItems": 16,
            "items": {
                "type": "object",
                "properties": {
                    "matches": {
                        "type": "array",
                        "maxItems": 8,
                        "items": {
                            "type": "object",
                            "properties": {
                                "method": {
                                    "type": "object",
                                    "properties": {
                                        "type": {"type": "string", "enum": ["Exact", "RegularExpression"]},
                                        "service": {"type": "string", "maxLength": 1024},
                                        "method": {"type": "string", "maxLength": 1024},
                                    },
                                },
                                "headers": HEADER_MATCHES_SCHEMA,
                            },
                        },
                    },
                    "filters": HTTP_FILTERS_SCHEMA,
                    "backendRefs": BACKEND_REFS_SCHEMA,
                },
            },
        },
    },
}

L4_ROUTE_SPEC_SCHEMA = {
    "type": "object",
    "properties": {
        "parentRefs": PARENT_REFS_SCHEMA,
        "hostnames": {"type": "array", "maxItems": 16, "items": HOSTNAME_SCHEMA},
        "rules": {
            "type": "array",
            "minItems": 1,
            "maxItems": 16,
            "items": {
                "type": "object",
                "properties": {"backendRefs": BACKEND_REFS_SCHEMA},
            },
        },
    },
}

LISTENER_SCHEMA = {
    "description": "Listener embodies the concept of a logical endpoint where a Gateway accepts network connections.",
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 253},
        "hostname": HOSTNAME_SCHEMA,
        "port": PORT_SCHEMA,
        "protocol": {"type": "string", "minLength": 1, "maxLength": 255},
        "tls": {
            "type": "object",
            "properties": {
                "mode": {"type": "string", "enum": ["Terminate", "Passthrough"]},
                "certificateRefs": {
                    "type": "array",
                    "maxItems": 64,
                    "items": {
                        "type": "object",
                        "properties": {
                            "group": {"type": "string"},
                            "kind": {"type": "string"},
                            "name": {"type": "string", "minLength": 1},
                            "namespace": {"type": "string"},
                        },
                        "required": ["name"],
                    },
                },
            },
        },
        "allowedRoutes": {
            "type": "object",
            "properties": {
                "namespaces": {
                    "type": "object",
                    "properties": {
                        "from": {"type": "string", "enum": ["All", "Selector", "Same"]},
                        "selector": {"type": "object"},
                    },
                },
                "kinds": {
                    "type": "array",
                    "maxItems": 8,
                    "items": {
                        "type": "object",
                        "properties": {
                            "group": {"type": "string"},
                            "kind": {"type": "string", "minLength": 1},
                        },
                        "required": ["kind"],
                    },
                },
            },
        },
    },
    "required": ["name", "port", "protocol"],
}
