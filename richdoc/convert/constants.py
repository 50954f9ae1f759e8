"""Static classification tables used by the converter.

These are immutable. Callers extend them per conversion through the `element_styles` and
`block_type_overrides` options, never by mutation.
"""

from types import MappingProxyType

from richdoc.documents.model import BlockType, InlineStyle

# -- `\r` is always normalized out of source text, so it can only appear in a fragment when the
# -- converter puts it there as a soft-break placeholder
SOFT_BREAK_PLACEHOLDER = "\r"
# -- upstream importers (e.g. Markdown) mark a forced break inside text with a zero-width space --
ZERO_WIDTH_SPACE = "\u200b"
NO_BREAK_SPACE = "\u00a0"

# -- phrasing (inline) elements; every other tag is treated as a block --
INLINE_ELEMENTS = frozenset(
    (
        "a",
        "abbr",
        "acronym",
        "applet",
        "area",
        "audio",
        "b",
        "basefont",
        "bdi",
        "bdo",
        "big",
        "br",
        "button",
        "canvas",
        "cite",
        "code",
        "command",
        "datalist",
        "del",
        "dfn",
        "em",
        "embed",
        "font",
        "i",
        "iframe",
        "img",
        "input",
        "ins",
        "isindex",
        "kbd",
        "keygen",
        "label",
        "map",
        "mark",
        "meter",
        "noscript",
        "object",
        "output",
        "progress",
        "q",
        "ruby",
        "s",
        "samp",
        "script",
        "select",
        "small",
        "span",
        "strike",
        "strong",
        "style",
        "sub",
        "sup",
        "textarea",
        "time",
        "tt",
        "u",
        "var",
        "video",
        "wbr",
    )
)

# -- elements that cannot hold childNodes but must still occupy one character position --
SELF_CLOSING_ELEMENTS = frozenset(("img",))

# -- containers that never hold text directly; they join the block stack but emit no block --
SPECIAL_ELEMENTS = frozenset(
    (
        "area",
        "base",
        "basefont",
        "br",
        "col",
        "colgroup",
        "command",
        "dialog",
        "dir",
        "dl",
        "embed",
        "head",
        "hgroup",
        "hr",
        "iframe",
        "img",
        "input",
        "isindex",
        "keygen",
        "link",
        "meta",
        "ol",
        "optgroup",
        "option",
        "param",
        "script",
        "select",
        "source",
        "style",
        "table",
        "tbody",
        "textarea",
        "tfoot",
        "thead",
        "title",
        "tr",
        "track",
        "ul",
        "wbr",
    )
)

BLOCK_TYPE_BY_TAG = MappingProxyType(
    {
        "h1": BlockType.HEADER_ONE,
        "h2": BlockType.HEADER_TWO,
        "h3": BlockType.HEADER_THREE,
        "h4": BlockType.HEADER_FOUR,
        "h5": BlockType.HEADER_FIVE,
        "h6": BlockType.HEADER_SIX,
        "blockquote": BlockType.BLOCKQUOTE,
        "pre": BlockType.CODE,
        "figure": BlockType.ATOMIC,
    }
)

ORDERED_LIST_TAG = "ol"
LIST_ITEM_TAG = "li"

INLINE_STYLE_BY_TAG = MappingProxyType(
    {
        "b": InlineStyle.BOLD,
        "strong": InlineStyle.BOLD,
        "i": InlineStyle.ITALIC,
        "em": InlineStyle.ITALIC,
        "u": InlineStyle.UNDERLINE,
        "ins": InlineStyle.UNDERLINE,
        "code": InlineStyle.CODE,
        "s": InlineStyle.STRIKETHROUGH,
        "del": InlineStyle.STRIKETHROUGH,
    }
)

# -- element attribute -> entity data key, for tags that produce entities --
ENTITY_ATTRIBUTE_MAP = MappingProxyType(
    {
        "a": MappingProxyType({"href": "url", "rel": "rel", "target": "target", "title": "title"}),
        "img": MappingProxyType({"src": "src", "alt": "alt", "width": "width", "height": "height"}),
    }
)
