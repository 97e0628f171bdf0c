"""Artist name normalization used as a comparison key across providers."""

import re

_APOSTROPHES = re.compile(r"['’‘`]")
_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Canonicalize a free-text artist name for equality and containment checks.

    Lowercases, strips a leading "the ", removes apostrophes, removes any other
    non-alphanumeric character except spaces and collapses whitespace. The
    result is only ever a key; it is never shown or stored as a name.

    Examples:
        >>> normalize_name("The Beatles")
        'beatles'
        >>> normalize_name("Godspeed You! Black Emperor")
        'godspeed you black emperor'
        >>> normalize_name("Guns N' Roses")
        'guns n roses'
    """
    text = _WHITESPACE.sub(" ", name.lower()).strip()
    if text.startswith("the "):
        text = text[4:]
    text = _APOSTROPHES.sub("", text)
    text = _NON_ALNUM.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()
