# billager/contact.py
"""Contact-the-seller intents.

Targets are scheme-qualified strings (``tel:...``, ``mailto:...``) handed to an
``IntentDispatcher``. The phone number is passed through verbatim.
"""
import webbrowser
from typing import Callable

from .errors import IntentError
from .utils import logger


def phone_target(phone: str) -> str:
    return f"tel:{phone}"


def email_target(email: str) -> str:
    return f"mailto:{email}"


class IntentDispatcher:
    """Opens targets with a handler returning False when nothing accepted them."""

    def __init__(self, opener: Callable[[str], bool] = webbrowser.open):
        self.opener = opener

    def open(self, target: str) -> None:
        try:
            handled = self.opener(target)
        except webbrowser.Error as e:
            raise IntentError(f"Could not open {target}: {e}") from e
        if not handled:
            raise IntentError(f"No handler registered for {target}")
        logger.info("Dispatched %s", target.split(":", 1)[0])
