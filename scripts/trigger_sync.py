#!/usr/bin/env python3
"""pNode Monitor sync trigger.

Standalone script (stdlib only) that calls POST /api/v1/sync with the shared
API key and reports the cycle result. Designed for cron.

Exit codes:
    0: sync cycle succeeded
    1: sync failed, was rejected, or the server was unreachable

Usage:
    SYNC_API_KEY=... python scripts/trigger_sync.py
    python scripts/trigger_sync.py --url http://10.0.0.5:8000/api/v1/sync --api-key ...
"""

import argparse
import json
import logging
import os
import sys
import urllib.error
import urllib.request

logger = logging.getLogger("pnode_monitor.trigger_sync")
logger.setLevel(logging.INFO)

_console_handler = logging.StreamHandler(sys.stdout)
_console_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
logger.addHandler(_console_handler)


def trigger_sync(url: str, api_key: str, timeout: int = 120) -> tuple[bool, dict]:
    """POST to the sync endpoint and return (succeeded, response_data)."""
    req = urllib.request.Request(
        url,
        data=b"",
        headers={"Accept": "application/json", "X-API-Key": api_key},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.loads(resp.read().decode("utf-8"))
            return bool(data.get("success")), data
    except urllib.error.HTTPError as e:
        return False, {"error": f"HTTP {e.code}", "reason": str(e.reason)}
    except urllib.error.URLError as e:
        return False, {"error": "unreachable", "reason": str(e.reason)}
    except (OSError, ValueError) as e:
        return False, {"error": "exception", "reason": str(e)}


def main() -> int:
    parser = argparse.ArgumentParser(description="Trigger a pNode Monitor sync cycle")
    parser.add_argument("--url", default="http://127.0.0.1:8000/api/v1/sync", help="Sync endpoint URL")
    parser.add_argument("--api-key", default=os.environ.get("SYNC_API_KEY"), help="Shared sync API key")
    parser.add_argument("--timeout", type=int, default=120, help="Request timeout in seconds")
    args = parser.parse_args()

    if not args.api_key:
        logger.error("No API key: pass --api-key or set SYNC_API_KEY")
        return 1

    ok, data = trigger_sync(args.url, args.api_key, timeout=args.timeout)
    if ok:
        sync = data.get("sync", {})
        logger.info(
            "SYNC OK: %s/%s nodes in %sms, cleanup=%s",
            sync.get("nodes_success"),
            sync.get("nodes_queried"),
            sync.get("duration_ms"),
            json.dumps(data.get("cleanup")),
        )
        return 0

    logger.error("SYNC FAILED: %s", json.dumps(data))
    return 1


if __name__ == "__main__":
    sys.exit(main())
