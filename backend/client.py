"""
Waitlist client with local fallback storage.

Submits to the waitlist server when its health probe answers, and keeps the
signup in a local store otherwise. Locally kept entries are never pushed to
the server later.
"""
import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Optional

import httpx

from config import get_settings
from models import AppendResult
from validation import is_valid_email
from waitlist import JsonFileWaitlistStore, WaitlistStore

logger = logging.getLogger(__name__)

SERVER = "server"
LOCAL = "local"

ERRORS_BY_STATUS = {400: "invalid", 409: "duplicate", 500: "write"}


@dataclass
class JoinOutcome:
    result: AppendResult
    storage: Optional[str] = None  # SERVER, LOCAL, or None when rejected before storing


class WaitlistClient:
    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        fallback_store: Optional[WaitlistStore] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 5.0,
    ):
        if fallback_store is None:
            fallback_store = JsonFileWaitlistStore(get_settings().fallback_file)
        self.fallback_store = fallback_store
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def server_available(self) -> bool:
        try:
            response = self._http.get("/api/health")
        except httpx.HTTPError:
            return False
        return response.is_success

    def submit(self, email: str) -> AppendResult:
        try:
            response = self._http.post("/api/waitlist", json={"email": email})
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Server error: %s", e)
            return AppendResult(success=False, message="Server unavailable", error="unavailable")

        if not isinstance(payload, dict):
            return AppendResult(success=False, message="Server unavailable", error="unavailable")

        success = bool(payload.get("success"))
        return AppendResult(
            success=success,
            message=str(payload.get("message", "")),
            total=payload.get("totalEmails") or 0,
            error=None if success else ERRORS_BY_STATUS.get(response.status_code, "unavailable"),
        )

    def join(self, email: str) -> JoinOutcome:
        email = email.strip()
        if not is_valid_email(email):
            return JoinOutcome(
                AppendResult(success=False, message="Please enter a valid email address.", error="invalid")
            )

        if self.server_available():
            result = self.submit(email)
            if result.error != "unavailable":
                return JoinOutcome(result, SERVER)
            logger.info("Submission failed, keeping %s locally", email)
        else:
            logger.info("Server unreachable, keeping %s locally", email)

        return JoinOutcome(self.fallback_store.append(email), LOCAL)


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Join the Quralyst waitlist")
    subparsers = parser.add_subparsers(dest="command", required=True)
    join_parser = subparsers.add_parser("join", help="Add an email to the waitlist")
    join_parser.add_argument("email")
    join_parser.add_argument("--server", default=f"http://localhost:{settings.port}", help="Server base URL")
    join_parser.add_argument("--fallback-file", default=str(settings.fallback_file), help="Local fallback store")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level)
    client = WaitlistClient(args.server, JsonFileWaitlistStore(args.fallback_file))
    try:
        outcome = client.join(args.email)
    finally:
        client.close()

    print(outcome.result.message)
    if outcome.storage:
        print(f"Storage method: {outcome.storage}")
    return 0 if outcome.result.success else 1


if __name__ == "__main__":
    sys.exit(main())
