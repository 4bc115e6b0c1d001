"""Top-level package for handscribe, a text-to-handwriting page renderer.

Provides subpackages:
- handscribe.layout – page geometry, line layout and pagination
- handscribe.fonts – font acquisition and measurement
- handscribe.render – paper, handwriting glyphs and image overlays
- handscribe.output – PNG/JPEG/PDF export
"""


def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    # In dev mode, read directly from pyproject.toml
    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
        except OSError:
            content = ""
        for line in content.splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.1.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    # Fallback to importlib.metadata for installed package
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("handscribe")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

from .config import Settings, SettingsStore, settings_from_json, settings_from_mapping  # noqa: E402
from .controller import (  # noqa: E402
    Document,
    RenderResult,
    RenderScheduler,
    export_document,
    render_document,
    render_to_file,
)
from .render import ImageOverlay  # noqa: E402

__all__: list[str] = [
    "__version__",
    # Configuration
    "Settings",
    "SettingsStore",
    "settings_from_json",
    "settings_from_mapping",
    # Pipeline
    "Document",
    "ImageOverlay",
    "RenderResult",
    "RenderScheduler",
    "render_document",
    "export_document",
    "render_to_file",
]
