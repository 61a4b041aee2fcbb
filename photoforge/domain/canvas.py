# domain/canvas.py
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from photoforge.domain.geometry import PixelRect
from photoforge.infrastructure.imaging.image_process import RGBA, TRANSPARENT

Font = ImageFont.FreeTypeFont


def font_height(font: Font) -> float:
    ascent, descent = font.getmetrics()
    return float(ascent + descent)


class Canvas:
    """RGBA raster being composed; origin top-left, pixel coordinates.

    Text positions are baseline-relative: `draw_string(s, x, y)` puts the
    left end of the baseline at (x, y).
    """

    def __init__(self, width: int, height: int, background: Optional[RGBA] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid canvas size {width}x{height}")
        color = background if background and background[3] > 0 else TRANSPARENT
        self._image = Image.new("RGBA", (width, height), color)
        self._draw = ImageDraw.Draw(self._image)

    @classmethod
    def from_image(cls, img: Image.Image) -> "Canvas":
        canvas = cls(img.width, img.height)
        canvas._image.paste(img.convert("RGBA"))
        return canvas

    @property
    def image(self) -> Image.Image:
        return self._image

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def draw_image_anchored(self, img: Image.Image, x: float, y: float, ax: float = 0.0, ay: float = 0.0,
                            clip: Optional[PixelRect] = None) -> None:
        """Alpha-composite `img` so that its (ax, ay) fraction lands on (x, y).

        Anything outside `clip` (and outside the canvas) is dropped.
        """
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        left = round(x - ax * img.width)
        top = round(y - ay * img.height)

        bounds = PixelRect(0, 0, self.width, self.height)
        if clip is not None:
            bounds = PixelRect(max(bounds.left, clip.left), max(bounds.top, clip.top),
                               min(bounds.right, clip.right), min(bounds.bottom, clip.bottom))

        l = max(left, bounds.left)
        t = max(top, bounds.top)
        r = min(left + img.width, bounds.right)
        b = min(top + img.height, bounds.bottom)
        if r <= l or b <= t:
            return
        self._image.alpha_composite(img, dest=(l, t), source=(l - left, t - top, r - left, b - top))

    def overlay(self, img: Image.Image) -> None:
        self.draw_image_anchored(img, 0, 0)

    def measure_string(self, text: str, font: Font) -> Tuple[float, float]:
        return font.getlength(text), font_height(font)

    def draw_string(self, text: str, x: float, y: float, font: Font, color: RGBA) -> None:
        self._draw.text((x, y), text, fill=color, font=font, anchor="ls")

    def draw_string_anchored(self, text: str, x: float, y: float, ax: float, ay: float,
                             font: Font, color: RGBA) -> None:
        w, h = self.measure_string(text, font)
        self.draw_string(text, x - ax * w, y + ay * h, font, color)

    def word_wrap(self, text: str, width: float, font: Font) -> List[str]:
        lines: List[str] = []
        for paragraph in text.split("\n"):
            line = ""
            for word in paragraph.split():
                candidate = f"{line} {word}" if line else word
                if line and font.getlength(candidate) > width:
                    lines.append(line)
                    line = word
                else:
                    line = candidate
            lines.append(line)
        return lines

    def draw_string_wrapped(self, text: str, x: float, y: float, ax: float, ay: float, width: float,
                            line_spacing: float, font: Font, color: RGBA) -> None:
        """Word-wrap `text` at `width` pixels and draw it left aligned.

        The block is `width` wide and its height follows the line count; (ax,
        ay) select which point of that block sits on (x, y).
        """
        lines = self.word_wrap(text, width, font)
        fh = font_height(font)
        h = len(lines) * fh * line_spacing - (line_spacing - 1) * fh
        x -= ax * width
        y -= ay * h
        for line in lines:
            self.draw_string_anchored(line, x, y, 0, 1, font, color)
            y += fh * line_spacing

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, color: RGBA, width: int = 1) -> None:
        self._draw.line([(x1, y1), (x2, y2)], fill=color, width=width)

    def fill_rect(self, rect: PixelRect, color: RGBA) -> None:
        """Fill `rect` with both edges inclusive."""
        if rect.right < rect.left or rect.bottom < rect.top:
            return
        self._draw.rectangle([rect.left, rect.top, rect.right, rect.bottom], fill=color)
