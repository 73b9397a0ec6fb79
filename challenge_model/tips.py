from __future__ import annotations

import random
from typing import Iterable, List

from .models import SecurityTip


_SEED_TIPS = [
    ("Always check the sender's email address, not just the display name, to avoid falling for phishing attacks.", "phishing"),
    ("Use a password manager to generate and store unique passwords for all your accounts.", "passwords"),
    ("Enable two-factor authentication on all your important accounts for an extra layer of security.", "authentication"),
    ("Regularly update your device's operating system and apps to protect against security vulnerabilities.", "updates"),
    ("Be cautious when connecting to public Wi-Fi networks. Consider using a VPN for better security.", "network"),
    ("Review app permissions regularly and revoke access to your camera, microphone, and location when not needed.", "privacy"),
    ("Encrypt your sensitive data to protect it from unauthorized access even if your device is lost or stolen.", "encryption"),
    ("Be wary of suspicious links in emails, texts, or social media messages that could lead to phishing sites.", "phishing"),
    ("Backup your important data regularly to protect against ransomware attacks and device failure.", "backup"),
    ("Lock your device with a strong PIN, pattern, or biometric authentication to prevent unauthorized access.", "device"),
]

SECURITY_TIPS: tuple[SecurityTip, ...] = tuple(
    SecurityTip(id=i, tip=text, category=category)
    for i, (text, category) in enumerate(_SEED_TIPS, start=1)
)


class TipCatalog:
    """Canned security tips shown between challenge problems."""

    def __init__(self, tips: Iterable[SecurityTip] = SECURITY_TIPS, seed: int | None = None) -> None:
        self._tips: List[SecurityTip] = list(tips)
        self._rng = random.Random(seed)

    def all(self) -> List[SecurityTip]:
        return list(self._tips)

    def categories(self) -> List[str]:
        return sorted({t.category for t in self._tips})

    def by_category(self, category: str) -> List[SecurityTip]:
        return [t for t in self._tips if t.category == category]

    def random_tip(self, category: str | None = None) -> SecurityTip | None:
        pool = self._tips if category is None else self.by_category(category)
        if not pool:
            return None
        return self._rng.choice(pool)
