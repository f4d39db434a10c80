"""Classification of bare confirm/cancel replies.

Only short, standalone replies count. Anything longer ("yes but only the
TikTok one") goes to the oracle.
"""

import re

from ..types import Intent

CONFIRM_PATTERN = re.compile(
    r"^\s*(confirm|yes|yep|yup|yeah|yea|sure|ok|okay|do it|go ahead|proceed|execute|"
    r"approved?|absolutely|definitely|kk)\s*[.!]?\s*$",
    re.IGNORECASE,
)
CANCEL_PATTERN = re.compile(
    r"^\s*(no|nah|nope|cancel|nevermind|never mind|abort|stop|don't|dont|scratch that)"
    r"\s*[.!]?\s*$",
    re.IGNORECASE,
)


def classify_intent(text: str) -> Intent:
    """Classify a reply as CONFIRM, CANCEL or NEITHER."""
    if not text:
        return Intent.NEITHER
    if CONFIRM_PATTERN.match(text):
        return Intent.CONFIRM
    if CANCEL_PATTERN.match(text):
        return Intent.CANCEL
    return Intent.NEITHER
