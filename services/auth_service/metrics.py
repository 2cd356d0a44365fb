from __future__ import annotations

from prometheus_client import Counter

AUTHENTICATION_ATTEMPTS = Counter(
    "auth_authentication_attempts_total",
    "Total number of authentication attempts",
    labelnames=("method", "status", "failure_reason"),
)

TOKEN_ISSUANCE = Counter(
    "auth_tokens_issued_total",
    "Total number of tokens issued",
    labelnames=("token_type",),
)

PASSWORD_RESET_REQUESTS = Counter(
    "auth_password_reset_requests_total",
    "Total number of password reset requests and completions",
    labelnames=("stage", "status"),
)

EMAIL_VERIFICATIONS = Counter(
    "auth_email_verifications_total",
    "Total number of email verification attempts",
    labelnames=("status",),
)

FEDERATED_LOGINS = Counter(
    "auth_federated_logins_total",
    "Total number of federated logins by account branch",
    labelnames=("branch",),
)

NOTIFICATION_FAILURES = Counter(
    "auth_notification_failures_total",
    "Total number of notification dispatch failures",
    labelnames=("kind",),
)
