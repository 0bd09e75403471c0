# gitledger_core/events.py
from __future__ import annotations
from typing import Any, Callable, Dict, List
from gitledger_core.logger import get_logger

log = get_logger("GitLedger.Events")

ACCOUNT_REMOVED = "account-removed"
ALL_ACCOUNTS_REMOVED = "all-accounts-removed"

Handler = Callable[[Any], None]


class LocalBus:
    """
    In-process publish/subscribe used for post-mutation notifications.

    Delivery is synchronous: publish() returns after every handler ran.
    A failing handler is logged and does not stop delivery to the rest.
    """

    def __init__(self):
        self.handlers: Dict[str, List[Handler]] = {}

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        self.handlers.setdefault(topic, []).append(handler)
        log.debug(f"[LOCAL SUB] {topic}")

        def unsubscribe() -> None:
            subs = self.handlers.get(topic, [])
            if handler in subs:
                subs.remove(handler)

        return unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        log.info(f"[LOCAL PUB] {topic} payload={payload!r}")
        for handler in list(self.handlers.get(topic, [])):
            try:
                handler(payload)
            except Exception:
                log.exception(f"[LOCAL PUB] handler failed for {topic}")
