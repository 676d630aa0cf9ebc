"""Monitoring configuration for the game."""
from prometheus_client import Counter, start_http_server

# Round metrics
rounds_started = Counter(
    "vocaman_rounds_started_total",
    "Total number of rounds started",
    ["grade"],
)

rounds_finished = Counter(
    "vocaman_rounds_finished_total",
    "Total number of rounds finished",
    ["grade", "outcome"],
)

guesses = Counter(
    "vocaman_guesses_total",
    "Total number of evaluated guesses",
    ["kind"],
)

pool_exhausted = Counter(
    "vocaman_pool_exhausted_total",
    "Number of times every word of a grade was solved",
    ["grade"],
)

# Reward metrics
reward_points = Counter(
    "vocaman_reward_points_total",
    "Total number of reward points credited",
)

# Storage metrics
store_errors = Counter(
    "vocaman_store_errors_total",
    "Total number of key-value store errors",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
