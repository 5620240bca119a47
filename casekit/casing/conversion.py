"""Word-level case conversion for single keys and identifiers.

``camel_case`` turns ``foo_bar``, ``foo-bar``, ``foo.bar`` or ``Foo Bar``
into ``fooBar`` (or ``FooBar`` in PascalCase mode). ``decamelize`` is the
inverse used for outgoing SQL identifiers: ``fooBar`` becomes ``foo_bar``.

Both functions work character by character on top of ``str.isupper`` and
``str.islower`` so that non-ASCII letters split the same way ASCII ones do.
"""

import re
from typing import Final

_SEPARATORS: Final[str] = "_.- "

_LEADING_SEPARATORS: Final = re.compile(r"^[_.\- ]+")
_SEPARATORS_AND_IDENTIFIER: Final = re.compile(r"[_.\- ]+(\w|$)")
_NUMBERS_AND_IDENTIFIER: Final = re.compile(r"[0-9]+(\w|$)")


def _is_lower(char: str) -> bool:
    return char.lower() == char and char.upper() != char


def _is_upper(char: str) -> bool:
    return char.upper() == char and char.lower() != char


def _mark_humps(text: str, *, preserve_consecutive_uppercase: bool) -> str:
    """Insert ``-`` at every camel hump so the hump becomes a word boundary.

    A boundary goes between a lowercase letter and a following uppercase one
    (``fooBar`` -> ``foo-Bar``) and before the last capital of an uppercase
    run that is followed by a lowercase letter (``XMLHttp`` -> ``XML-Http``).
    """
    chars = list(text)
    last_lower = False
    last_upper = False
    last_last_upper = False

    index = 0
    while index < len(chars):
        char = chars[index]
        last_last_preserved = chars[index - 3] == "-" if index > 2 else True

        if last_lower and char.isupper():
            chars.insert(index, "-")
            last_lower = False
            last_last_upper = last_upper
            last_upper = True
            index += 1
        elif (
            last_upper
            and last_last_upper
            and char.islower()
            and (not last_last_preserved or preserve_consecutive_uppercase)
        ):
            chars.insert(index - 1, "-")
            last_last_upper = last_upper
            last_upper = False
            last_lower = True
        else:
            last_lower = _is_lower(char)
            last_last_upper = last_upper
            last_upper = _is_upper(char)
        index += 1

    return "".join(chars)


def _lower_leading_capital(text: str) -> str:
    # A lone leading capital starts a normal word; a leading run is an acronym
    if text and text[0].isupper() and not (len(text) > 1 and text[1].isupper()):
        return text[0].lower() + text[1:]
    return text


def camel_case(
    text: str,
    *,
    pascal_case: bool = False,
    preserve_consecutive_uppercase: bool = False,
) -> str:
    """Convert a dash, dot, underscore or space separated string to camelCase.

    Args:
        text: The string to convert.
        pascal_case: Uppercase the first character (``FooBar``).
        preserve_consecutive_uppercase: Keep uppercase runs such as ``BAR``
            in ``foo-BAR`` instead of lowercasing them.

    Returns:
        str: The converted string.

    Examples:
        >>> camel_case("foo_bar")
        'fooBar'
        >>> camel_case("foo-bar", pascal_case=True)
        'FooBar'
        >>> camel_case("foo-BAR", preserve_consecutive_uppercase=True)
        'fooBAR'
    """
    text = text.strip()

    if not text:
        return ""

    if len(text) == 1:
        return text.upper() if pascal_case else text.lower()

    if text != text.lower():
        text = _mark_humps(
            text, preserve_consecutive_uppercase=preserve_consecutive_uppercase
        )

    text = _LEADING_SEPARATORS.sub("", text)
    text = (
        _lower_leading_capital(text)
        if preserve_consecutive_uppercase
        else text.lower()
    )

    if pascal_case and text:
        text = text[0].upper() + text[1:]

    text = _SEPARATORS_AND_IDENTIFIER.sub(lambda m: m.group(1).upper(), text)
    return _NUMBERS_AND_IDENTIFIER.sub(lambda m: m.group(0).upper(), text)


def _is_upper_or_digit(char: str) -> bool:
    return char.isupper() or char.isdecimal()


def _lower_lone_capitals(text: str) -> str:
    """Lowercase capitals and digits that are not part of an uppercase run."""
    chars = list(text)
    for index, char in enumerate(text):
        if not _is_upper_or_digit(char):
            continue
        before = text[index - 1] if index else ""
        after = text[index + 1] if index + 1 < len(text) else ""
        if not (before and _is_upper_or_digit(before)) and not (
            after and _is_upper_or_digit(after)
        ):
            chars[index] = char.lower()
    return "".join(chars)


def _split_uppercase_runs(text: str, separator: str, *, lower_word: bool) -> str:
    """Split ``URLString`` into ``URL`` + separator + ``String``.

    The separator goes before the last capital of every run of two or more
    capitals that is directly followed by a lowercase letter.
    """
    parts: list[str] = []
    index = 0
    while index < len(text):
        run_end = index
        while run_end < len(text) and text[run_end].isupper():
            run_end += 1

        if run_end - index >= 2 and run_end < len(text) and text[run_end].islower():
            word_start = run_end - 1
            capital = text[word_start].lower() if lower_word else text[word_start]
            parts.extend((text[index:word_start], separator, capital))
            index = run_end
        elif run_end > index:
            parts.append(text[index:run_end])
            index = run_end
        else:
            parts.append(text[index])
            index += 1

    return "".join(parts)


def decamelize(
    text: str,
    *,
    separator: str = "_",
    preserve_consecutive_uppercase: bool = False,
) -> str:
    """Convert a camelCase string to lowercase words joined by ``separator``.

    Args:
        text: The camelCase (or PascalCase) string to convert.
        separator: Character placed between words.
        preserve_consecutive_uppercase: Keep uppercase runs (acronyms) as-is.

    Returns:
        str: The decamelized string.

    Examples:
        >>> decamelize("unicornRainbow")
        'unicorn_rainbow'
        >>> decamelize("myURLString")
        'my_url_string'
        >>> decamelize("dataForUSACounties", preserve_consecutive_uppercase=True)
        'data_for_USA_counties'
    """
    if len(text) < 2:
        return text if preserve_consecutive_uppercase else text.lower()

    parts: list[str] = []
    for index, char in enumerate(text):
        previous = text[index - 1] if index else ""
        if char.isupper() and previous and (previous.islower() or previous.isdecimal()):
            parts.append(separator)
        parts.append(char)
    decamelized = "".join(parts)

    if preserve_consecutive_uppercase:
        return _split_uppercase_runs(
            _lower_lone_capitals(decamelized), separator, lower_word=True
        )

    return _split_uppercase_runs(decamelized, separator, lower_word=False).lower()
