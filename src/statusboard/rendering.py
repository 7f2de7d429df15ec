"""Jinja2 template renderer for dashboard fragments and the index page."""
from collections.abc import Mapping
from typing import Any

import structlog
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)
from pydantic import BaseModel

from statusboard.exceptions import RenderError

logger = structlog.get_logger()


class TemplateRenderer:
    """Render named templates from a directory.

    A template named ``foo`` is loaded from ``<templates_dir>/foo.html``.
    Rendering is a pure function of the template and its context.
    """

    def __init__(self, templates_dir: str, auto_reload: bool = False) -> None:
        """Initialize renderer.

        Args:
            templates_dir: Directory containing ``*.html`` templates.
            auto_reload: Re-read templates from disk when they change.
        """
        self._env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            auto_reload=auto_reload,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, name: str, record: BaseModel | Mapping[str, Any]) -> str:
        """Render template ``name`` with the fields of ``record``.

        Args:
            name: Template name without the ``.html`` suffix.
            record: Pydantic model or mapping providing the template context.

        Returns:
            Rendered text.

        Raises:
            RenderError: If the template is missing or fails to render.
        """
        context = record.model_dump() if isinstance(record, BaseModel) else dict(record)
        try:
            template = self._env.get_template(f"{name}.html")
            return template.render(**context)
        except TemplateError as e:
            raise RenderError(f"Failed to render {name}: {e}", template=name) from e
