"""Jinja2 environment for the source-code templates."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Generated code is not HTML; select_autoescape leaves .j2 templates unescaped
_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def render_template(name: str, **context: object) -> str:
    """Render a template from the package template directory."""
    return _JINJA_ENV.get_template(name).render(**context)
