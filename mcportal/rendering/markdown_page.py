from dataclasses import dataclass

import markdown
from fastapi.templating import Jinja2Templates
from markupsafe import Markup


@dataclass(frozen=True)
class MarkdownContext:
    server_name: str
    file_name: str


class MarkdownRenderer:
    """Renders readme-style markdown files from a mod directory as a page."""

    EXTENSIONS = ["fenced_code", "tables"]

    def __init__(self, templates: Jinja2Templates) -> None:
        self.templates = templates

    def render(self, data: bytes, context: MarkdownContext) -> str:
        body = markdown.markdown(
            data.decode("utf-8", errors="replace"), extensions=self.EXTENSIONS
        )
        template = self.templates.get_template("markdown.html")
        return template.render(
            server_name=context.server_name,
            file_name=context.file_name,
            content=Markup(body),
        )
