from time import perf_counter

from prometheus_client import Counter, Histogram

# ---- METRICS (names are Prometheus-safe; units are in names) ----

SCAN_REQUESTS = Counter(
    "scan_requests_total",
    "Parse/scan requests by endpoint and outcome",
    labelnames=("endpoint", "outcome"),
)

MEDICATIONS_EXTRACTED = Histogram(
    "medications_extracted",
    "Unique medications found per parsed prescription",
    buckets=(0, 1, 2, 3, 5, 8, 13),
)

REQUEST_LATENCY_MS = Histogram(
    "request_latency_ms",
    "End-to-end latency per endpoint in milliseconds",
    labelnames=("endpoint",),
    # OCR dominates /api/scan; parsing alone is sub-millisecond
    buckets=(1, 5, 25, 100, 400, 1600, 6400, 25600),
)

STORAGE_WRITES = Counter(
    "storage_writes_total",
    "Writes to the prescription storage API",
    labelnames=("resource", "outcome"),
)

ERRORS_TOTAL = Counter(
    "errors_total",
    "Count of errors by type",
    labelnames=("type",),
)

# ---- HELPERS ----

def timer_start() -> float:
    return perf_counter()

def timer_observe_ms(start: float, endpoint: str) -> float:
    elapsed_ms = (perf_counter() - start) * 1000.0
    REQUEST_LATENCY_MS.labels(endpoint=endpoint).observe(elapsed_ms)
    return elapsed_ms

def record_scan(endpoint: str, outcome: str) -> None:
    SCAN_REQUESTS.labels(endpoint=endpoint, outcome=outcome).inc()

def record_medications(count: int) -> None:
    MEDICATIONS_EXTRACTED.observe(count)

def record_storage(resource: str, outcome: str) -> None:
    STORAGE_WRITES.labels(resource=resource, outcome=outcome).inc()

def record_error(err_type: str) -> None:
    ERRORS_TOTAL.labels(type=err_type).inc()
