import random
import string
from unittest.mock import MagicMock

import pytest

from src.shortener.core.exceptions import RandomSourceError
from src.shortener.services.code_generator import ALPHABET, CODE_LENGTH, generate_code


def test_alphabet_is_base62():
    assert len(ALPHABET) == 62
    assert set(ALPHABET) == set(string.ascii_letters + string.digits)


def test_generated_code_has_fixed_length_and_alphabet():
    for _ in range(200):
        code = generate_code()
        assert len(code) == CODE_LENGTH == 7
        assert all(char in ALPHABET for char in code)


def test_custom_length():
    assert len(generate_code(12)) == 12


def test_thousand_codes_do_not_collide():
    codes = [generate_code() for _ in range(1000)]
    assert len(set(codes)) == len(codes)


def test_every_symbol_is_reachable():
    # 14000 draws; the chance of any of the 62 symbols never showing up is negligible.
    seen = set("".join(generate_code() for _ in range(2000)))
    assert seen == set(ALPHABET)


def test_uses_the_given_source():
    source = MagicMock(spec=random.SystemRandom)
    source.choice.return_value = "Z"
    assert generate_code(source=source) == "ZZZZZZZ"
    assert source.choice.call_count == 7


@pytest.mark.parametrize("error", [OSError("no entropy"), NotImplementedError("urandom missing")])
def test_entropy_failure_raises_random_source_error(error):
    source = MagicMock(spec=random.SystemRandom)
    source.choice.side_effect = error
    with pytest.raises(RandomSourceError):
        generate_code(source=source)
