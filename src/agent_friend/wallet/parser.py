"""Best-effort extraction of a send intent from free text.

This is positional pattern matching, not a grammar.  Each field is found
independently by the first match of its pattern, so phrasing such as
"to 0x... from 0x..." works, but anything that splits a field from its
keyword (``"from my wallet 0x..."``) does not.  Parse failures are reported
per field so the user can rephrase.
"""

from __future__ import annotations

import re

from agent_friend.errors import CommandParseError
from agent_friend.wallet.models import SendIntent

UNIT = "eth"

_AMOUNT_RE = re.compile(rf"(\d+(?:\.\d+)?|\.\d+)\s*{UNIT}\b", re.IGNORECASE)
_FROM_RE = re.compile(r"\bfrom\s+(0x[0-9a-fA-F]{40})(?![0-9a-fA-F])", re.IGNORECASE)
_TO_RE = re.compile(r"\bto\s+(0x[0-9a-fA-F]{40})(?![0-9a-fA-F])", re.IGNORECASE)
_KEY_RE = re.compile(
    r"\bprivate\s+key\s*[:=]?\s*((?:0x)?[0-9a-fA-F]{64})(?![0-9a-fA-F])",
    re.IGNORECASE,
)
_SEND_RE = re.compile(r"\bsend\b", re.IGNORECASE)
_UNIT_RE = re.compile(rf"(?:\b|\d){UNIT}\b", re.IGNORECASE)

_FORMAT_HINT = "Use the format: send 0.01 ETH from 0x<40 hex> to 0x<40 hex>"


def looks_like_send_command(text: str) -> bool:
    """True when *text* mentions ``send`` and the currency unit."""
    return bool(_SEND_RE.search(text) and _UNIT_RE.search(text))


def parse_send_command(text: str) -> SendIntent:
    """Extract amount, source, destination and optional key from *text*.

    Raises
    ------
    CommandParseError
        Naming the first missing field (``amount``, ``from`` or ``to``).
    """
    amount = _AMOUNT_RE.search(text)
    if amount is None:
        raise CommandParseError("amount", f"Could not find an amount in ETH. {_FORMAT_HINT}")

    source = _FROM_RE.search(text)
    if source is None:
        raise CommandParseError("from", f"Could not find a source address after 'from'. {_FORMAT_HINT}")

    destination = _TO_RE.search(text)
    if destination is None:
        raise CommandParseError("to", f"Could not find a destination address after 'to'. {_FORMAT_HINT}")

    key = _KEY_RE.search(text)
    return SendIntent(
        amount=amount.group(1),
        from_address=source.group(1),
        to_address=destination.group(1),
        private_key=key.group(1) if key else None,
    )


def redact_private_key(text: str) -> str:
    """Replace any ``private key <hex>`` value in *text* with a placeholder."""
    return _KEY_RE.sub(lambda m: m.group(0).replace(m.group(1), "[redacted]"), text)
