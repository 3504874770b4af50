from prometheus_client import Counter, Histogram, make_asgi_app

# outcome is one of: ok, rejected, unauthenticated, malformed, unreachable, file_access
REQUESTS = Counter(
    "om_client_requests_total",
    "Total object manager requests issued by the client",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "om_client_request_duration_seconds",
    "Object manager request latency in seconds",
    ["operation"],
)

# /metrics ASGI app for hosting applications
metrics_app = make_asgi_app()
