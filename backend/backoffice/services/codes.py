from __future__ import annotations
import secrets, string
from typing import Callable, Sequence

from backoffice.errors import ValidationError

DIGITS = "digits"
LETTERS = "letters"
MIXED = "mixed"

ALPHABETS = {
    DIGITS: string.digits,
    LETTERS: string.ascii_letters,
    MIXED: string.digits + string.ascii_letters,
}

# admin forms post 1/2/3; older callers use num/letter/mix
_ALIASES = {
    "1": DIGITS, "num": DIGITS, "digit": DIGITS,
    "2": LETTERS, "letter": LETTERS, "alpha": LETTERS,
    "3": MIXED, "mix": MIXED, "alnum": MIXED,
}

Chooser = Callable[[Sequence[str]], str]


def normalize_rule(rule: str | int) -> str:
    key = str(rule).strip().lower()
    key = _ALIASES.get(key, key)
    if key not in ALPHABETS:
        raise ValidationError(f"unknown character rule {rule!r}")
    return key


def generate_code(length: int, rule: str | int = MIXED, choice: Chooser = secrets.choice) -> str:
    if length <= 0:
        raise ValidationError("length must be > 0")
    alphabet = ALPHABETS[normalize_rule(rule)]
    return "".join(choice(alphabet) for _ in range(length))
