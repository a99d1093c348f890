import random
import secrets
import string
from typing import Optional

from src.shortener.core.exceptions import RandomSourceError

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
CODE_LENGTH = 7


def generate_code(length: int = CODE_LENGTH, source: Optional[random.SystemRandom] = None) -> str:
    """
    Generate a random short code.

    Every character is drawn independently from ALPHABET using the operating
    system's CSPRNG. ``SystemRandom.choice`` samples by rejection, so all 62
    symbols are equally likely.

    Args:
        length: Length of the code, defaults to 7
        source: Secure random source, defaults to the one behind ``secrets``

    Returns:
        A string of ``length`` characters from ALPHABET

    Raises:
        RandomSourceError: If the entropy source cannot supply random bytes
    """
    source = source or secrets.SystemRandom()
    try:
        return "".join(source.choice(ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as e:
        raise RandomSourceError("Secure random source failed") from e
