from richdoc.convert.classifiers import (
    EntityRef,
    InlineCreators,
    PartialBlock,
    Style,
)
from richdoc.convert.engine import ContentGenerator, ConversionOptions, convert
from richdoc.convert.html import convert_html, parse_html
from richdoc.convert.md import convert_markdown

__all__ = [
    "ContentGenerator",
    "ConversionOptions",
    "EntityRef",
    "InlineCreators",
    "PartialBlock",
    "Style",
    "convert",
    "convert_html",
    "convert_markdown",
    "parse_html",
]
