"""
Push notification fan-out.

Registered tokens are either Expo push tokens (mobile app) or serialized
web-push subscriptions (JSON). Only Expo delivery is implemented; web-push
subscriptions are stored and skipped at send time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
import asyncio
import logging

import requests
from sqlalchemy import select

from scrc_api.models import PushToken

logger = logging.getLogger(__name__)

EXPO_BATCH_SIZE = 100


def is_expo_token(token: str) -> bool:
    return token.startswith(("ExponentPushToken[", "ExpoPushToken["))


@dataclass
class PushMessage:
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, tokens: List[str], message: PushMessage) -> int:
        ...


class ExpoNotifier:
    """Sends notifications through the Expo push HTTP API."""

    def __init__(self, push_url: str, timeout: float = 10.0):
        self.push_url = push_url
        self.timeout = timeout

    def _post(self, batch: List[dict]) -> None:
        response = requests.post(
            self.push_url,
            json=batch,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()

    async def notify(self, tokens: List[str], message: PushMessage) -> int:
        """
        Send a message to every Expo token.

        Returns:
            int: Number of tokens the message was accepted for
        """
        expo_tokens = [t for t in tokens if is_expo_token(t)]
        skipped = len(tokens) - len(expo_tokens)
        if skipped:
            logger.debug(f"Skipping {skipped} web-push subscription(s)")

        delivered = 0
        for start in range(0, len(expo_tokens), EXPO_BATCH_SIZE):
            chunk = expo_tokens[start:start + EXPO_BATCH_SIZE]
            batch = [
                {"to": token, "title": message.title, "body": message.body, "data": message.data, "sound": "default"}
                for token in chunk
            ]
            try:
                await asyncio.to_thread(self._post, batch)
                delivered += len(chunk)
            except requests.RequestException as e:
                logger.error(f"Expo push delivery failed for {len(chunk)} token(s): {str(e)}")
        return delivered


@dataclass
class InMemoryNotifier:
    """Records notifications instead of sending them."""

    sent: List[tuple] = field(default_factory=list)

    async def notify(self, tokens: List[str], message: PushMessage) -> int:
        self.sent.append((list(tokens), message))
        return len(tokens)


def build_notifier(settings) -> Notifier:
    if settings.PUSH_BACKEND.lower() == "expo":
        return ExpoNotifier(settings.EXPO_PUSH_URL)
    return InMemoryNotifier()


async def notify_subscribers(context, title: str, body: str, data: Optional[dict] = None) -> None:
    """
    Send a notification to every registered token.
    Runs as a background task after the response; failures are only logged.
    """
    try:
        async with context.session_factory() as session:
            tokens = list((await session.execute(select(PushToken.token))).scalars())
        if not tokens:
            return
        delivered = await context.notifier.notify(tokens, PushMessage(title=title, body=body, data=data or {}))
        logger.info(f"Push notification '{title}' delivered to {delivered} of {len(tokens)} token(s)")
    except Exception as e:
        logger.error(f"Push notification '{title}' failed: {str(e)}", exc_info=True)
