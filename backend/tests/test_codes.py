import string
import pytest

from backoffice.errors import ValidationError
from backoffice.services.codes import DIGITS, LETTERS, MIXED, generate_code, normalize_rule


@pytest.mark.parametrize("raw,expected", [
    ("1", DIGITS), (1, DIGITS), ("num", DIGITS),
    ("2", LETTERS), ("letter", LETTERS),
    ("3", MIXED), ("mix", MIXED), ("Mixed", MIXED),
])
def test_rule_aliases(raw, expected):
    assert normalize_rule(raw) == expected


def test_unknown_rule_rejected():
    with pytest.raises(ValidationError):
        normalize_rule("hex")


def test_alphabets_respected():
    assert set(generate_code(200, DIGITS)) <= set(string.digits)
    assert set(generate_code(200, LETTERS)) <= set(string.ascii_letters)
    assert set(generate_code(200, MIXED)) <= set(string.digits + string.ascii_letters)


def test_length_is_exact():
    assert len(generate_code(16, DIGITS)) == 16
    assert len(generate_code(8, LETTERS)) == 8
    with pytest.raises(ValidationError):
        generate_code(0, DIGITS)


def test_chooser_is_pluggable():
    assert generate_code(4, DIGITS, choice=lambda alphabet: alphabet[-1]) == "9999"
