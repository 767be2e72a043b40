import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")


def format_expiry(value, fmt="%d %b %Y"):
    """Expiry date for emails; a missing date means access never runs out."""
    return value.strftime(fmt) if value else "Never"


env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"])
)
env.filters["expiry"] = format_expiry


def render_template(template_path: str, **context) -> str:
    return env.get_template(template_path).render(**context)
