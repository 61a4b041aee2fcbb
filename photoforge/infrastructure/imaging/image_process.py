# infrastructure/imaging/image_process.py
import io
from typing import Optional, Tuple

from PIL import Image, ImageColor, UnidentifiedImageError

from photoforge.domain.errors import ConfigError

RGBA = Tuple[int, int, int, int]
TRANSPARENT: RGBA = (0, 0, 0, 0)


def decode_image(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ConfigError(f"cannot decode image: {e}") from e
    return img.convert("RGBA")


def parse_color(s: Optional[str], default: RGBA = (0, 0, 0, 255)) -> RGBA:
    """Hex color as RGBA; accepts #rgb, #rrggbb, #rrggbbaa with or without '#'."""
    if not s:
        return default
    s = s.strip()
    if not s.startswith("#") and all(c in "0123456789abcdefABCDEF" for c in s):
        s = "#" + s
    try:
        return ImageColor.getcolor(s, "RGBA")
    except ValueError as e:
        raise ConfigError(f'invalid color "{s}"') from e


def resize(src: Image.Image, w: int, h: int) -> Image.Image:
    """Lanczos resize; a zero dimension keeps the source aspect ratio."""
    src_w, src_h = src.size
    if w == 0 and h == 0:
        return src.copy()
    if w == 0:
        w = max(1, round(src_w * h / src_h))
    elif h == 0:
        h = max(1, round(src_h * w / src_w))
    if (w, h) == src.size:
        return src
    return src.resize((w, h), Image.Resampling.LANCZOS)


def resize_inner(src: Image.Image, w: int, h: int) -> Image.Image:
    """Fit inside w x h keeping the aspect ratio (clip mode)."""
    if w == 0 or h == 0:
        return resize(src, w, h)
    src_ratio = src.width / src.height
    if w / h > src_ratio:
        return resize(src, 0, h)
    return resize(src, w, 0)


def resize_outer(src: Image.Image, w: int, h: int) -> Image.Image:
    """Cover w x h keeping the aspect ratio (crop mode); may overflow."""
    if w == 0 or h == 0:
        return resize(src, w, h)
    src_ratio = src.width / src.height
    if w / h < src_ratio:
        return resize(src, 0, h)
    return resize(src, w, 0)


def resize_stretch(src: Image.Image, w: int, h: int) -> Image.Image:
    return resize(src, w, h)


RESIZERS = {
    "clip": resize_inner,
    "crop": resize_outer,
    "stretch": resize_stretch,
}


def encode_image(img: Image.Image, fmt: str = "jpeg", quality: int = 95) -> bytes:
    fmt = (fmt or "jpeg").lower()
    if fmt in ("jpg", "jpeg"):
        # JPEG can't have alpha
        if img.mode != "RGB":
            img = img.convert("RGB")
        save_kwargs = dict(format="JPEG", quality=quality, optimize=True)
    elif fmt == "png":
        # PNG supports alpha; keep mode as-is
        save_kwargs = dict(format="PNG", optimize=True)
    else:
        save_kwargs = dict(format=fmt.upper())

    buf = io.BytesIO()
    img.save(buf, **save_kwargs)
    return buf.getvalue()


EMPTY_PNG = encode_image(Image.new("RGBA", (1, 1), TRANSPARENT), "png")
