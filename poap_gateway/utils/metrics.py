"""
Prometheus metrics for the POAP gateway.
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

CLAIMS_TOTAL = Counter(
    "poap_claims_total",
    "Claim attempts by outcome",
    ["outcome"],  # confirmed, rejected, mint_failed, unconfirmed
)

MINT_DURATION = Histogram(
    "poap_mint_duration_seconds",
    "Time spent building, sending and confirming a mint transaction",
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)

RELAYER_BALANCE = Gauge(
    "poap_relayer_balance_lamports",
    "Last observed relayer balance in lamports",
)


def render_latest():
    """Return (body, content_type) for the /metrics endpoint."""
    return generate_latest(), CONTENT_TYPE_LATEST
