from __future__ import annotations

import socket
import threading
from typing import Optional

import requests

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"


class Notifier:
    """Fire-and-forget Pushover notifications for failed event scripts.

    Sending happens on a daemon thread so a slow network never delays the
    watch loop. Delivery errors are dropped."""
    def __init__(self, enabled: bool, pushover_token: Optional[str], pushover_user: Optional[str],
                 timeout_s: float = 5.0):
        self.enabled = enabled and bool(pushover_token and pushover_user)
        self._token = pushover_token
        self._user = pushover_user
        self._timeout = timeout_s
        self._host = socket.gethostname()

    @classmethod
    def from_config(cls, cfg: dict) -> "Notifier":
        return cls(cfg.get("enabled", False), cfg.get("pushover_token"), cfg.get("pushover_user"))

    def send(self, title: str, message: str, priority: int = 0):
        if not self.enabled:
            return
        threading.Thread(target=self._send_sync, args=(title, message, priority), daemon=True).start()

    def _send_sync(self, title: str, message: str, priority: int):
        try:
            requests.post(
                PUSHOVER_URL,
                data={
                    "token": self._token,
                    "user": self._user,
                    "title": title,
                    "message": f"[{self._host}] {message}",
                    "priority": priority,
                },
                timeout=self._timeout,
            )
        except requests.RequestException:
            pass
