"""
Operational metrics for the webhook.

Tracks inventory cache behaviour, resolution outcomes and Slack delivery so
that stale caches and throttled posts show up on dashboards.
"""

from prometheus_client import Counter

# --- Inventory Metrics ---
INVENTORY_REFRESHES_TOTAL = Counter(
    "ec2bot_inventory_refreshes_total",
    "Full inventory listings fetched from AWS",
    ["resource_class", "outcome"],  # outcome: success, failure
)

INVENTORY_LOOKUPS_TOTAL = Counter(
    "ec2bot_inventory_lookups_total",
    "Query lookups against the inventory cache",
    ["resource_class", "outcome"],  # outcome: found, not_found
)

TAG_LOOKUPS_TOTAL = Counter(
    "ec2bot_tag_lookups_total",
    "Load balancer tag lookups",
    ["outcome"],  # outcome: hit, miss
)

# --- Slack Metrics ---
SLACK_POSTS_TOTAL = Counter(
    "ec2bot_slack_posts_total",
    "Messages posted back to Slack",
    ["kind", "outcome"],
)

# --- API Metrics ---
API_ERRORS_TOTAL = Counter(
    "ec2bot_api_errors_total",
    "Total number of API errors returned",
    ["path", "method", "status_code"],
)
