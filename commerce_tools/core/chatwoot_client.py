# commerce_tools/core/chatwoot_client.py
"""
Conversation labeling for Chatwoot.

Responsibilities:
  - Build an immutable ChatwootConfig from Settings (or nothing, if the
    integration is not configured).
  - Tag a conversation with labels by merging them into its current label set.
  - Never let a failure reach the caller: labeling is best-effort and must not
    affect cart operations.

Typical .env configuration:

    CHATWOOT_BASE_URL=https://app.chatwoot.com
    CHATWOOT_ACCOUNT_ID=12345
    CHATWOOT_API_TOKEN=xxxxxxxx
    CHATWOOT_TIMEOUT_SECONDS=3
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Protocol
from urllib.parse import quote

import httpx

from commerce_tools.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

LABELER_WORKERS = 4


class ConversationLabeler(Protocol):
    def tag_conversation(self, conversation_id: str, labels: Iterable[str]) -> None:
        ...


class NullLabeler:
    """Labeler used when Chatwoot is not configured. Does nothing."""

    def tag_conversation(self, conversation_id: str, labels: Iterable[str]) -> None:
        return None


@dataclass(frozen=True)
class ChatwootConfig:
    base_url: str
    account_id: str
    api_token: str
    timeout_seconds: float = 3.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatwootConfig | None":
        """
        Return a config only when base URL, account id and token are all set.
        """
        base_url = (settings.CHATWOOT_BASE_URL or "").strip()
        account_id = (settings.CHATWOOT_ACCOUNT_ID or "").strip()
        api_token = (settings.CHATWOOT_API_TOKEN or "").strip()
        if not (base_url and account_id and api_token):
            return None
        return cls(
            base_url=base_url.rstrip("/"),
            account_id=account_id,
            api_token=api_token,
            timeout_seconds=settings.CHATWOOT_TIMEOUT_SECONDS,
        )

    def labels_url(self, conversation_id: str) -> str:
        return (
            f"{self.base_url}/api/v1/accounts/{self.account_id}"
            f"/conversations/{quote(conversation_id, safe='')}/labels"
        )


def merge_labels(current: Iterable[str], new: Iterable[str]) -> list[str]:
    """
    Union of two label sets, keeping the existing order first.
    New labels are appended in sorted order; duplicates are dropped.
    """
    merged: list[str] = []
    for label in list(current) + sorted(new):
        if label not in merged:
            merged.append(label)
    return merged


class ChatwootLabeler:
    """
    Adds labels to a Chatwoot conversation.

    Chatwoot's labels endpoint replaces the whole set on POST, so we first
    GET the current labels and send back the union.

    The GET and POST share one deadline of `timeout_seconds`. The work runs
    on a small worker pool and the caller stops waiting once the deadline
    passes, so a slow Chatwoot never holds a cart response longer than that.
    """

    def __init__(self, config: ChatwootConfig, client: httpx.Client | None = None):
        self.config = config
        self._client = client
        self._executor = ThreadPoolExecutor(
            max_workers=LABELER_WORKERS,
            thread_name_prefix="chatwoot-labels",
        )

    def _headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            "api_access_token": self.config.api_token,
        }

    @staticmethod
    def _remaining(deadline: float) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise httpx.TimeoutException("Chatwoot labeling deadline exceeded")
        return remaining

    def _apply_labels(
        self,
        client: httpx.Client,
        conversation_id: str,
        labels: list[str],
        deadline: float,
    ) -> None:
        url = self.config.labels_url(conversation_id)

        current_res = client.get(
            url,
            headers=self._headers(),
            timeout=self._remaining(deadline),
        )
        if not current_res.is_success:
            logger.warning(
                "Chatwoot label read failed for conversation %s: HTTP %s",
                conversation_id,
                current_res.status_code,
            )
            return

        body = current_res.json()
        payload = body.get("payload") if isinstance(body, dict) else None
        current = payload if isinstance(payload, list) else []

        update_res = client.post(
            url,
            headers=self._headers(),
            json={"labels": merge_labels(current, labels)},
            timeout=self._remaining(deadline),
        )
        if not update_res.is_success:
            logger.warning(
                "Chatwoot label update failed for conversation %s: HTTP %s",
                conversation_id,
                update_res.status_code,
            )

    def _run(self, conversation_id: str, labels: list[str], deadline: float) -> None:
        if self._client is not None:
            self._apply_labels(self._client, conversation_id, labels, deadline)
            return
        with httpx.Client(timeout=self.config.timeout_seconds) as client:
            self._apply_labels(client, conversation_id, labels, deadline)

    def tag_conversation(self, conversation_id: str, labels: Iterable[str]) -> None:
        """
        Merge `labels` into the conversation's label set.

        Any failure (timeout, transport error, bad JSON, non-2xx) is logged
        and swallowed.
        """
        deadline = time.monotonic() + self.config.timeout_seconds
        try:
            future = self._executor.submit(self._run, conversation_id, list(labels), deadline)
            future.result(timeout=self.config.timeout_seconds)
        except FutureTimeoutError:
            logger.warning(
                "Chatwoot labeling for conversation %s exceeded %.1fs; not waiting",
                conversation_id,
                self.config.timeout_seconds,
            )
        except Exception as e:
            # Labels must never break a purchase
            logger.warning(
                "Chatwoot labeling skipped for conversation %s: %s",
                conversation_id,
                e,
            )


def build_labeler(settings: Settings) -> ConversationLabeler:
    config = ChatwootConfig.from_settings(settings)
    if config is None:
        logger.info("Chatwoot not configured; conversation labeling disabled.")
        return NullLabeler()
    return ChatwootLabeler(config)


@lru_cache
def get_labeler() -> ConversationLabeler:
    """
    FastAPI dependency returning the process-wide labeler.
    Override in tests with app.dependency_overrides[get_labeler].
    """
    return build_labeler(get_settings())
