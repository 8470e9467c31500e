"""Prometheus metrics for the review service.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter

# Review decisions that were persisted
review_decisions_total = Counter(
    "docreview_review_decisions_total",
    "Total review decisions applied",
    ["stage", "action"]  # stage: junior|compliance, action: approved|rejected
)

# Review attempts refused by the state machine or the gate
review_rejections_total = Counter(
    "docreview_review_rejections_total",
    "Total review attempts refused",
    ["reason"]  # reason: not_found|already_finalized|duplicate_review|wrong_stage|invalid_state
)

# Lost optimistic-concurrency races
review_conflicts_total = Counter(
    "docreview_review_conflicts_total",
    "Total conditional review writes that lost a race",
    ["outcome"]  # outcome: retried|failed
)

# Document sealing outcomes
document_sealing_total = Counter(
    "docreview_document_sealing_total",
    "Total document sealing attempts",
    ["status"]  # status: success|error|skipped
)

# Activity log writes
activity_log_writes_total = Counter(
    "docreview_activity_log_writes_total",
    "Total activity log writes",
    ["status"]  # status: success|error
)
