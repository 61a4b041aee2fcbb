# domain/frame_template.py
import math
from typing import Optional, Tuple

import yaml
from PIL import Image
from pydantic import Field, field_validator

from photoforge.config.logger import get_logger
from photoforge.domain.canvas import Canvas, Font
from photoforge.domain.errors import ConfigError
from photoforge.domain.geometry import PixelRect
from photoforge.domain.plugins.text import load_font_data, new_face
from photoforge.domain.pricing import currency_symbol, group_thousands
from photoforge.domain.schema import YamlModel, decode
from photoforge.infrastructure.assets import AssetSource
from photoforge.infrastructure.imaging.image_process import RGBA, decode_image, parse_color
from photoforge.infrastructure.imaging.resize_cache import ResizeCache

logger = get_logger(__name__)

WHITE: RGBA = (255, 255, 255, 255)


class FrameTextConfig(YamlModel):
    # anchor, as fractions of the photo: x = W - right*W, y = top*H
    top: float = 0
    right: float = 0
    # center the text on the anchor instead of right-aligning it
    vertical_center: bool = False

    # text height as a fraction of the photo height
    height: float = 0
    font_uri: str = ""
    color: str = ""

    # rule thickness as a fraction of the text box height
    strike_through: float = 0
    strike_full: bool = False
    strike_pos: float = 0

    @field_validator("strike_through")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return min(max(v, 0.0), 1.0)


class FrameTemplateConfig(YamlModel):
    frame_uri: str = Field("", alias="frameURI")
    promo_frame_uri: str = Field("", alias="promoFrameURI")

    price_only: FrameTextConfig = Field(default_factory=FrameTextConfig)
    price_orig: FrameTextConfig = Field(default_factory=FrameTextConfig)
    price_promo: FrameTextConfig = Field(default_factory=FrameTextConfig)


class PriceStyle:
    """A FrameTextConfig with its color parsed and font file loaded."""

    def __init__(self, config: FrameTextConfig, color: RGBA, font_data: Optional[bytes]):
        self.config = config
        self.color = color
        self.font_data = font_data

    def face(self, image_height: int) -> Font:
        return new_face(self.font_data, max(1, round(image_height * self.config.height)), self.config.font_uri)


async def _load_style(assets: AssetSource, config: FrameTextConfig, what: str,
                      reference: Optional[PriceStyle] = None) -> PriceStyle:
    try:
        color = parse_color(config.color, default=WHITE)
        if config.font_uri:
            font_data = await load_font_data(assets, config.font_uri)
            new_face(font_data, 12, config.font_uri)
        elif reference is not None:
            font_data = reference.font_data
        else:
            raise ConfigError("fontUri must be valid")
    except ConfigError as e:
        raise ConfigError(f"{what}: {e}") from e
    return PriceStyle(config, color, font_data)


class FrameTemplate:
    """Overlays a fixed frame on a source photo and prints its prices.

    The canvas is the photo itself; the frame is resampled to the photo size
    once per (size, variant) and kept in the template's resize cache.
    """

    def __init__(self, name: str, frame: Image.Image, promo_frame: Optional[Image.Image],
                 price_only: PriceStyle, price_orig: PriceStyle, price_promo: PriceStyle):
        self.name = name
        self.frame = frame
        self.promo_frame = promo_frame
        self.price_only = price_only
        self.price_orig = price_orig
        self.price_promo = price_promo
        self.frames = ResizeCache()

    def __repr__(self) -> str:
        return f"<FrameTemplate {self.name} promo={self.promo_frame is not None}>"

    def frame_for(self, size: Tuple[int, int], is_promo: bool) -> Image.Image:
        if is_promo and self.promo_frame is not None:
            return self.frames.get_resized(self.promo_frame, size, "promo")
        return self.frames.get_resized(self.frame, size, "default")

    @staticmethod
    def anchor_point(tc: FrameTextConfig, size: Tuple[int, int]) -> Tuple[int, int]:
        w, h = size
        return w - int(tc.right * w), int(tc.top * h)

    def draw_pricing(self, canvas: Canvas, anchor: Tuple[int, int], price: int, style: PriceStyle) -> None:
        tc = style.config
        face = style.face(canvas.height)
        txt = f"{group_thousands(price)} {currency_symbol()}"
        left, top, right, bottom = face.getbbox(txt, anchor="ls")
        txt_w = right - left
        txt_h = bottom - top

        f_right, f_top = anchor
        base_left = f_right - txt_w
        base_bottom = f_top + txt_h
        if tc.vertical_center:
            base_left = f_right - txt_w / 2
            f_right += txt_w / 2

        canvas.draw_string(txt, base_left, base_bottom, face, style.color)

        rect = PixelRect(math.floor(base_left), math.floor(f_top), math.ceil(f_right), math.ceil(base_bottom))
        self._strike_through(canvas, style, face, rect)

    def _strike_through(self, canvas: Canvas, style: PriceStyle, face: Font, rect: PixelRect) -> None:
        tc = style.config
        if tc.strike_through <= 0:
            return

        # leave the currency symbol unstruck
        right_offset = 0
        if not tc.strike_full:
            right_offset = -math.floor(face.getlength(f" {currency_symbol()}"))

        height = rect.height + 1
        line_h = math.ceil(tc.strike_through * height)
        y = int(rect.top + height * tc.strike_pos) - line_h // 2
        canvas.fill_rect(PixelRect(rect.left, y, rect.right + right_offset, y + line_h - 1), style.color)

    def generate(self, src: Image.Image, price: int, promotion_price: int) -> Image.Image:
        canvas = Canvas.from_image(src)
        canvas.overlay(self.frame_for(canvas.size, price != promotion_price))

        if price == promotion_price:
            self.draw_pricing(canvas, self.anchor_point(self.price_only.config, canvas.size), price,
                              self.price_only)
        else:
            self.draw_pricing(canvas, self.anchor_point(self.price_orig.config, canvas.size), price,
                              self.price_orig)
            self.draw_pricing(canvas, self.anchor_point(self.price_promo.config, canvas.size), promotion_price,
                              self.price_promo)
        return canvas.image

    def generate_no_price(self, src: Image.Image) -> Image.Image:
        canvas = Canvas.from_image(src)
        canvas.overlay(self.frame_for(canvas.size, False))
        return canvas.image


async def parse_frame_template(name: str, raw: bytes, assets: AssetSource) -> FrameTemplate:
    """Build a frame template from its YAML source, loading frames and fonts."""
    try:
        m = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}", template=name) from e

    try:
        cfg = decode(FrameTemplateConfig, m, "frame template")
        if not cfg.frame_uri:
            raise ConfigError("field frameURI is required")
        frame = decode_image(await assets.get(cfg.frame_uri, tag="frame"))
        promo_frame = None
        if cfg.promo_frame_uri:
            promo_frame = decode_image(await assets.get(cfg.promo_frame_uri, tag="frame"))

        price_only = await _load_style(assets, cfg.price_only, "PriceOnly")
        price_orig = await _load_style(assets, cfg.price_orig, "PriceOrig", price_only)
        price_promo = await _load_style(assets, cfg.price_promo, "PricePromo", price_only)
    except ConfigError as e:
        e.template = name
        raise

    logger.debug(f"parsed frame template {name}: promo frame={promo_frame is not None}")
    return FrameTemplate(name, frame, promo_frame, price_only, price_orig, price_promo)
