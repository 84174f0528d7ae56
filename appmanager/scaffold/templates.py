"""Template engine for manifests and scaffolded files."""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateRenderError(Exception):
    """Raised when a bundled template fails to render."""


class TemplateEngine:
    """Handles template rendering for manifests and scaffolding."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.template_dir = template_dir or TEMPLATE_DIR
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render ``<template_name>.j2`` with the given context."""
        try:
            template = self.jinja_env.get_template(f"{template_name}.j2")
            return template.render(**context)
        except TemplateError as exc:
            raise TemplateRenderError(f"Failed to render {template_name}: {exc}") from exc
