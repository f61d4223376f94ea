"""Jinja2-based template rendering for skiptrace reports.

Templates ship inside the package (``reports/templates``) so installed copies
can render without a checkout; point ``templates_dir`` elsewhere to use a
customised set. Every environment gets the report filters below.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

HIGH_BAND = 75
MEDIUM_BAND = 50


def confidence_band(score: int | None) -> str:
    """Map a 0-100 score to ``high`` / ``medium`` / ``low``."""
    if score is None:
        return "low"
    if score >= HIGH_BAND:
        return "high"
    if score >= MEDIUM_BAND:
        return "medium"
    return "low"


def md_cell(value: Any) -> str:
    """Make ``value`` safe inside a Markdown table cell."""
    return str(value if value is not None else "").replace("|", "\\|").replace("\n", " ")


class TemplateEngine:
    """Load and render Jinja2 report templates.

    Args:
        templates_dir: Directory where templates live (default: the packaged templates).
    """

    def __init__(self, templates_dir: Path | str | None = None) -> None:
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(enabled_extensions=("html", "xml")),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["confidence_band"] = confidence_band
        self.env.filters["md_cell"] = md_cell

    def list_templates(self) -> List[str]:
        return list(self.env.list_templates())

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        """Render a named template with the provided context.

        Raises:
            FileNotFoundError: If the template does not exist.
        """
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound as e:
            raise FileNotFoundError(f"Template not found: {template_name}") from e
        return template.render(**context)
