import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

IDENTITY_HEADERS = ("x-user-id", "x-user-role")


def _drop_identity_headers(event, hint):
    headers = event.get("request", {}).get("headers")
    if headers:
        event["request"]["headers"] = {
            k: v for k, v in headers.items()
            if k.lower() not in IDENTITY_HEADERS
        }
    return event


def init_sentry(dsn: str, environment: str = "dev",
                traces_sample_rate: float = 0.2,
                service: str = "moviehub_votes") -> bool:
    """Start the Sentry SDK; returns False when no DSN is configured."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            # error records become events, the rest stays in stdout
            LoggingIntegration(level=None, event_level="ERROR"),
            FastApiIntegration(),
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=_drop_identity_headers,
    )
    sentry_sdk.set_tag("service", service)
    return True
