import base64
import io
from typing import Dict, Optional

from PIL import Image

from photoforge.domain.canvas import Canvas
from photoforge.infrastructure.assets import AssetSource

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def make_image(size=(40, 20), color=RED) -> Image.Image:
    return Image.new("RGBA", size, color)


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def data_uri(img: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(img)).decode()


class MemoryAssets(AssetSource):
    """Asset source that serves a dict of URI -> bytes before anything else."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        super().__init__(None, "static")
        self.files = dict(files or {})
        self.fetches = []

    async def get(self, uri: str, tag: str = "misc") -> bytes:
        self.fetches.append((uri, tag))
        if uri in self.files:
            return self.files[uri]
        return await super().get(uri, tag)


class RecordingCanvas(Canvas):
    """Canvas that remembers the strings and lines drawn on it."""

    def __init__(self, width: int, height: int, background=None):
        super().__init__(width, height, background)
        self.strings = []
        self.lines = []

    def draw_string(self, text, x, y, font, color):
        self.strings.append((text, x, y))
        super().draw_string(text, x, y, font, color)

    def draw_line(self, x1, y1, x2, y2, color, width=1):
        self.lines.append((x1, y1, x2, y2))
        super().draw_line(x1, y1, x2, y2, color, width)
