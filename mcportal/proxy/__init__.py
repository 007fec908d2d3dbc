from .gateway import (
    BODY_METHODS,
    STRIPPED_RESPONSE_HEADERS,
    ProxyGateway,
    build_target_url,
    build_upstream_headers,
    describe_upstream_error,
    filter_response_headers,
    proxy_gateway,
)

__all__ = [
    "BODY_METHODS",
    "STRIPPED_RESPONSE_HEADERS",
    "ProxyGateway",
    "build_target_url",
    "build_upstream_headers",
    "describe_upstream_error",
    "filter_response_headers",
    "proxy_gateway",
]
