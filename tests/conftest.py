import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src to sys.path so we can import handscribe
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from handscribe.config import PageSize, Settings  # noqa: E402
from handscribe.errors import FontUnavailable  # noqa: E402
from handscribe.fonts import FontProvider, clear_font_cache  # noqa: E402


class MissingFontProvider(FontProvider):
    """Provider with no fonts, so renders use Pillow's bundled font."""

    def __init__(self):
        self.requests = []

    def acquire(self, family, weight=400):
        self.requests.append((family, weight))
        raise FontUnavailable(family, weight, "test provider has no fonts")


@pytest.fixture(autouse=True)
def _reset_font_cache():
    clear_font_cache()
    yield
    clear_font_cache()


@pytest.fixture
def font_provider():
    """Font provider that always falls back to the bundled font."""
    return MissingFontProvider()


@pytest.fixture
def small_settings():
    """Small custom page so renders stay fast."""
    return Settings(
        page_size=PageSize.CUSTOM,
        page_width=400,
        page_height=300,
        margin_top=20,
        margin_right=20,
        margin_bottom=20,
        margin_left=20,
        font_size=16,
        line_height=1.5,
        line_spacing=24,
        jitter=0,
    )


@pytest.fixture
def png_bytes():
    """A 20x10 opaque red PNG."""
    buf = io.BytesIO()
    Image.new("RGB", (20, 10), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image on disk."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path
