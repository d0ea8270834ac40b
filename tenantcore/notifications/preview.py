"""
Developer preview output shared by the mail and SMS senders.

Instead of delivering, a preview renders the message to an HTML file under
``PREVIEW_DIR`` and optionally opens it in the local browser.
"""
import logging
import os
import webbrowser
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

logger = logging.getLogger(__name__)

PREVIEW_TEMPLATE_DIR = Path(__file__).parent / "templates" / "preview"

preview_env = Environment(
    loader=FileSystemLoader(str(PREVIEW_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_preview(template_name: str, context: Dict[str, Any]) -> str:
    return preview_env.get_template(template_name).render(**context)


def write_preview(directory: str, subdir: str, name: str, html: str) -> Path:
    """Write ``html`` to ``<directory>/<subdir>/<name>.html`` and return the path."""
    target_dir = Path(directory) / subdir
    os.makedirs(target_dir, exist_ok=True)
    path = target_dir / f"{name}.html"
    path.write_text(html, encoding="utf-8")
    return path


def open_in_browser(path: Path) -> None:
    try:
        webbrowser.open(path.resolve().as_uri())
    except webbrowser.Error as e:
        logger.warning(f"Could not open browser automatically: {e}")
