from .markdown_page import MarkdownContext, MarkdownRenderer
from .pages import MARKDOWN_EXTENSIONS, PageRenderer, create_templates

__all__ = [
    "MarkdownContext",
    "MarkdownRenderer",
    "MARKDOWN_EXTENSIONS",
    "PageRenderer",
    "create_templates",
]
