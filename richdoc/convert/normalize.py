"""Whitespace normalization of a finished block's text and its per-character metadata.

Every function here takes and returns a `TextFragment`, a text string paired with one
`CharacterMetadata` per character. Whatever is removed from or replaced in the text is removed
from or replaced in the metadata at the same positions, so `len(meta) == len(text)` holds on the
way out of every step.

The rules for a non-code block are:

- Every space, tab and newline becomes a space.
- Leading and trailing spaces are removed.
- Each run of spaces is reduced to its first space.
- A space immediately before or after a soft-break placeholder is removed.

A code block only loses a single leading newline, an artifact of `<pre>` source formatting.
"""

from __future__ import annotations

import re
from typing import Iterable, NamedTuple, Sequence

from richdoc.convert.constants import SOFT_BREAK_PLACEHOLDER
from richdoc.documents.model import CharacterMetadata

WHITESPACE = re.compile(r"[ \t\n]")


class TextFragment(NamedTuple):
    """A run of text with its per-character metadata."""

    text: str
    meta: Sequence[CharacterMetadata]


def concat_fragments(fragments: Iterable[TextFragment]) -> TextFragment:
    """Join `fragments` into one fragment, text and metadata alike."""
    text = ""
    meta: list[CharacterMetadata] = []
    for fragment in fragments:
        text += fragment.text
        meta.extend(fragment.meta)
    return TextFragment(text, meta)


def replace_text_with_meta(fragment: TextFragment, search: str, replace: str) -> TextFragment:
    """Replace each occurrence of `search` with `replace`, keeping metadata aligned.

    The characters of each replacement all receive the metadata of the first character of the
    match they replace.
    """
    text, meta = fragment
    if not search or search not in text:
        return fragment

    out_text: list[str] = []
    out_meta: list[CharacterMetadata] = []
    start = 0
    while (index := text.find(search, start)) != -1:
        out_text.append(text[start:index])
        out_meta.extend(meta[start:index])
        out_text.append(replace)
        out_meta.extend([meta[index]] * len(replace))
        start = index + len(search)
    out_text.append(text[start:])
    out_meta.extend(meta[start:])

    return TextFragment("".join(out_text), out_meta)


def trim_leading_newline(fragment: TextFragment) -> TextFragment:
    text, meta = fragment
    if text.startswith("\n"):
        return TextFragment(text[1:], meta[1:])
    return fragment


def collapse_whitespace(fragment: TextFragment) -> TextFragment:
    """Normalize whitespace in `fragment` as described in the module docstring."""
    text = WHITESPACE.sub(" ", fragment.text)
    meta = list(fragment.meta)

    # -- trim --
    start = len(text) - len(text.lstrip(" "))
    end = len(text.rstrip(" "))
    text, meta = text[start:end], meta[start:end]

    # -- reduce each run of spaces to its first space --
    kept = [i for i, c in enumerate(text) if not (c == " " and i > 0 and text[i - 1] == " ")]
    collapsed = TextFragment("".join(text[i] for i in kept), [meta[i] for i in kept])

    # -- there can still be one space on either side of a soft-break --
    collapsed = replace_text_with_meta(
        collapsed, SOFT_BREAK_PLACEHOLDER + " ", SOFT_BREAK_PLACEHOLDER
    )
    return replace_text_with_meta(collapsed, " " + SOFT_BREAK_PLACEHOLDER, SOFT_BREAK_PLACEHOLDER)


def resolve_soft_breaks(fragment: TextFragment) -> TextFragment:
    """Turn soft-break placeholders into newline characters, now that whitespace is settled."""
    return TextFragment(fragment.text.replace(SOFT_BREAK_PLACEHOLDER, "\n"), fragment.meta)


def normalize_block_text(fragment: TextFragment, is_code: bool) -> tuple[TextFragment, bool]:
    """Normalize the concatenated text of a finished block.

    Returns the normalized fragment and whether the block must be kept even though its text is
    empty. That is the case only for a block whose entire text was a single soft break.
    """
    keep_when_empty = False
    if fragment.text == SOFT_BREAK_PLACEHOLDER:
        keep_when_empty = True
        fragment = TextFragment("", [])

    fragment = trim_leading_newline(fragment) if is_code else collapse_whitespace(fragment)

    return resolve_soft_breaks(fragment), keep_when_empty
