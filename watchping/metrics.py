"""Prometheus metrics for WatchPing."""

from prometheus_client import Counter, Gauge, Histogram, Info

from watchping.version import __version__

# Application info
app_info = Info("watchping", "Application information")
app_info.info({
    "version": __version__,
    "service": "watchping",
})

# Cycle metrics
cycles_total = Counter(
    "watchping_cycles_total",
    "Total number of probe cycles executed",
    ["verdict"],
)

cycle_duration_seconds = Histogram(
    "watchping_cycle_duration_seconds",
    "Duration of probe cycles in seconds",
    buckets=[0.5, 1, 2, 5, 10, 30, 60, 120, 300],
)

dead_hosts_count = Gauge(
    "watchping_dead_hosts",
    "Number of hosts down or unresolvable in the last cycle",
)

# Host metrics
host_up_status = Gauge(
    "watchping_host_up",
    "Host reachability in the last cycle (1=up, 0=down or unknown)",
    ["host"],
)

probe_latency_ms = Gauge(
    "watchping_probe_latency_ms",
    "Average round-trip time of the last successful probe",
    ["host"],
)

# Notification metrics
notifications_sent_total = Counter(
    "watchping_notifications_sent_total",
    "Total number of notifications delivered",
    ["channel", "type"],
)

notifications_failed_total = Counter(
    "watchping_notifications_failed_total",
    "Total number of failed notification attempts",
    ["channel", "type"],
)
