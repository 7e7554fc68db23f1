"""Terminal message helpers for the conceptual CLI.

Status lines carry a glyph, with an ASCII fallback for terminals that cannot
encode emoji. Messages write to stderr so stdout stays machine-readable.
"""

import click

CAUTION = ("⚠️", "[!]")  # pragma: no mutate
SUCCESS = ("✅", "[OK]")  # pragma: no mutate
FAILURE = ("❌", "[X]")  # pragma: no mutate


def _supports_character(character: str) -> bool:
    """Return True if *character* can be encoded on stderr."""
    stream = click.get_text_stream("stderr")  # pragma: no mutate
    encoding = getattr(stream, "encoding", None) or "ascii"
    try:
        character.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def glyph(pair: tuple[str, str]) -> str:
    """Return the emoji of an (emoji, fallback) pair if stderr can encode it.

    Args:
        pair: One of `CAUTION`, `SUCCESS` or `FAILURE`.

    Returns:
        str: The emoji, or its ASCII fallback.
    """
    emoji, fallback = pair
    return emoji if _supports_character(emoji) else fallback


def warn(msg: str) -> None:
    """Emit a yellow, bold warning line to **stderr**.

    Example:
        ``⚠️  CONCEPTUAL_DB_URL is not set; using the in-memory store.``
    """
    click.secho(f"{glyph(CAUTION)}  {msg}", fg="yellow", bold=True, err=True)


def success(msg: str) -> None:
    """Emit a green, bold success line to **stderr**.

    Example:
        ``✅  2 concept unit(s) are isolated.``
    """
    click.secho(f"{glyph(SUCCESS)}  {msg}", fg="green", bold=True, err=True)


def error(msg: str) -> None:
    """Emit a red, bold error line to **stderr**.

    Example:
        ``❌  Cannot connect to the document store.``
    """
    click.secho(f"{glyph(FAILURE)}  {msg}", fg="red", bold=True, err=True)
