"""Fire-and-forget webhook notifications for AdminGuard security alerts"""
import hashlib
import hmac
import json
import threading
from datetime import datetime
from typing import Any, Dict

import requests

from app.config import settings
from app.utils.logger import logger

POLICY_VIOLATION_EVENT = "policy.violation"


def _deliver(url: str, body: bytes, headers: Dict[str, str]) -> None:
    """Deliver webhook payload in a daemon background thread (fire-and-forget)."""
    try:
        resp = requests.post(url, data=body, headers=headers, timeout=5)
        logger.debug(
            "Webhook delivered",
            extra={"path": url, "status": resp.status_code},
        )
    except requests.RequestException as exc:
        logger.warning(
            "Webhook delivery failed",
            extra={"path": url, "error": str(exc)},
        )


def _slack_body(event_type: str, payload: Dict[str, Any]) -> bytes:
    """Format an AdminGuard event as a Slack incoming-webhook message."""
    caller = payload.get("caller", "unknown")
    kind = payload.get("kind", "unknown")
    collection = payload.get("collection") or ""
    key = payload.get("key") or ""
    target = f" on `{collection}/{key}`" if collection else ""
    reason = payload.get("reason", "")
    ts = datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC")

    text = (
        f"*AdminGuard - Security Alert* :rotating_light:\n"
        f"Principal *{caller}* was denied (`{kind}`){target}."
        + (f"\n> {reason}" if reason else "")
    )

    slack_payload = {
        "attachments": [{
            "color": "#EF4444",
            "text": text,
            "footer": f"AdminGuard | {event_type} | {ts}",
        }]
    }
    return json.dumps(slack_payload).encode()


def send_webhook(event_type: str, payload: Dict[str, Any]) -> None:
    """
    Send a webhook notification for an AdminGuard event (non-blocking).

    Supported event types:
      - ``policy.violation`` - a write was denied as a likely bypass attempt
        (identity mismatch, self action, separation of duties)

    Configuration (backend/.env):
      - ``WEBHOOK_URL``    - destination URL; Slack incoming webhooks are auto-detected
                             and formatted with Slack's attachment format automatically.
      - ``WEBHOOK_SECRET`` - if set, adds ``X-AdminGuard-Signature: sha256=<hex>`` header
                             so the receiver can verify authenticity.

    The call returns immediately; delivery happens in a daemon thread.
    """
    url = settings.WEBHOOK_URL
    if not url:
        return

    is_slack = "hooks.slack.com" in url

    if is_slack:
        body = _slack_body(event_type, payload)
        headers: Dict[str, str] = {"Content-Type": "application/json"}
    else:
        body_dict: Dict[str, Any] = {
            "event": event_type,
            "timestamp": datetime.utcnow().isoformat() + "Z",
            **payload,
        }
        body = json.dumps(body_dict, default=str).encode()
        headers = {"Content-Type": "application/json"}

        if settings.WEBHOOK_SECRET:
            sig = hmac.new(
                settings.WEBHOOK_SECRET.encode(), body, hashlib.sha256
            ).hexdigest()
            headers["X-AdminGuard-Signature"] = f"sha256={sig}"

    threading.Thread(target=_deliver, args=(url, body, headers), daemon=True).start()
