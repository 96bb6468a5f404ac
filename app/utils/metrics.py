from prometheus_client import Counter, Histogram, Gauge

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"],
)
IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "HTTP requests in progress",
)

# 业务指标
OTP_ISSUED = Counter(
    "news_otp_issued_total",
    "One-time codes issued",
    ["purpose"],
)
EMAIL_DELIVERIES = Counter(
    "news_email_deliveries_total",
    "Outgoing email attempts",
    ["result"],
)
TAG_RECONCILIATIONS = Counter(
    "news_tag_reconciliations_total",
    "Article tag set reconciliations",
)


def get_route_name(scope: dict) -> str:
    """优先使用路由模板（/articles/{slug}），避免按具体路径产生高基数标签"""
    route = scope.get("route")
    if route and hasattr(route, "path"):
        return route.path
    return scope.get("path", "unknown")
