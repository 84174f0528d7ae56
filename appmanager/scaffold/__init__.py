"""Scaffolding for app source repositories and their deploy scripts."""

from .deploy import DeploymentScriptGenerator
from .templates import TemplateEngine, TemplateRenderError

__all__ = [
    "DeploymentScriptGenerator",
    "TemplateEngine",
    "TemplateRenderError",
]
