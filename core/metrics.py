"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, Histogram

# Intent metrics
intents_created_total = Counter("intents_created_total", "Total number of intents created", ["type"])

intent_transitions_total = Counter(
    "intent_transitions_total", "Total number of intent state transitions", ["to_state"]
)

intents_expired_total = Counter("intents_expired_total", "Total number of intents expired by sweeps", ["from_state"])

# Swipe metrics
swipes_recorded_total = Counter("swipes_recorded_total", "Total number of swipes recorded", ["action"])

swipes_rejected_total = Counter("swipes_rejected_total", "Total number of swipes rejected", ["reason"])

# Match metrics
matches_created_total = Counter(
    "matches_created_total", "Total number of reciprocal matches returned", ["outcome"]
)  # created | recovered

matches_finalized_total = Counter("matches_finalized_total", "Total number of matches finalized")

matches_expired_total = Counter("matches_expired_total", "Total number of pending matches expired")

match_anomalies_total = Counter(
    "match_anomalies_total", "Finalized matches whose intents failed to transition", ["reason"]
)

# Response time metrics
api_request_duration = Histogram(
    "api_request_duration_seconds", "API request duration in seconds", ["method", "endpoint", "status"]
)

expiry_sweep_duration = Histogram("expiry_sweep_duration_seconds", "Duration of one expiry sweep")
