# domain/plugins/text.py
import io
from typing import Any, ClassVar, Dict, Literal, Optional, Tuple

from PIL import ImageFont

from photoforge.domain.canvas import Canvas, Font
from photoforge.domain.errors import ConfigError
from photoforge.domain.plugins.base import Plugin, PluginConfig, bind_int, bind_string
from photoforge.domain.pricing import currency_symbol, ellipsis, format_price, group_thousands
from photoforge.infrastructure.assets import AssetSource
from photoforge.infrastructure.imaging.image_process import RGBA, parse_color

DEFAULT_FONT_URI = "default"

# horizontal offset of the decimal part, relative to the "123." prefix width
DECIMAL_OFFSET = 1.35
# strike rule height above the baseline, relative to the font height
STRIKE_POSITION = 0.25


async def load_font_data(assets: AssetSource, uri: str) -> Optional[bytes]:
    """Raw font file; None stands for Pillow's built-in font."""
    if uri == DEFAULT_FONT_URI:
        return None
    return await assets.get(uri, tag="font")


def new_face(data: Optional[bytes], size: float, uri: str = "") -> Font:
    if data is None:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(io.BytesIO(data), size=size)
    except OSError as e:
        raise ConfigError(f'load font face error "{uri}": {e}') from e


async def load_font(assets: AssetSource, uri: str, size: float) -> Font:
    """TrueType face from an asset URI; "default" is Pillow's built-in font."""
    return new_face(await load_font_data(assets, uri), size, uri)


class TextConfig(PluginConfig):
    BINDABLE: ClassVar[Tuple[str, ...]] = ("text", "price", "promotion_price", "decimal_price", "int_price")

    type: Literal["text"] = "text"
    text: str = ""
    price: int = 0
    promotion_price: int = 0
    decimal_price: int = 0
    int_price: int = 0

    # absolute pixels; baseline-left for prices, wrap anchor for free text
    x: float = 0
    y: float = 0
    color: str = ""
    font_uri: str = ""
    font_size: float = 0
    locale: str = ""
    currency: Optional[str] = None

    strike_full: bool = False
    draw_wrapped: bool = False
    is_dec: bool = False
    is_int: bool = False
    line_spacing: float = 1
    text_width: float = 0
    max_character: int = 0


class TextPlugin(Plugin):
    """Free text or localized price strings.

    Exactly one draw mode applies, picked by flags in this order: wrapped
    text, decimal part of a price, integer part of a price, then the
    promotional price with an optional struck-through original price.
    """
    type = "text"
    config_class = TextConfig

    def __init__(self, config: TextConfig, assets):
        super().__init__(config, assets)
        self._font: Optional[Font] = None
        self._color: RGBA = (0, 0, 0, 255)

    @property
    def ready(self) -> bool:
        return self._font is not None

    async def configure(self) -> None:
        if not self.config.font_uri:
            raise ConfigError("field fontUri is required")
        if self.config.font_size <= 0:
            raise ConfigError("field fontSize is required")
        self._color = parse_color(self.config.color)
        self._font = await load_font(self.assets, self.config.font_uri, self.config.font_size)

    def _bind_field(self, field: str, value: Any) -> Dict[str, Any]:
        if field == "text":
            return {"text": bind_string(value)}
        if field == "price":
            return {"price": bind_int(value, field)}
        if field == "promotion_price":
            return {"promotion_price": bind_int(value, field)}
        if field == "decimal_price":
            return {"decimal_price": bind_int(value, field) % 1000}
        if field == "int_price":
            return {"int_price": bind_int(value, field) // 1000}
        return {}

    async def _rebind(self, source: "TextPlugin", changed: Dict[str, Any]) -> None:
        # only values move on bind; the face and color are the template's
        self._font = source._font
        self._color = source._color
        if self._font is None:
            await self.configure()

    def format_price(self, value: int) -> str:
        return format_price(value, self.config.locale, self.config.currency)

    def apply(self, canvas: Canvas) -> None:
        cfg = self.config
        if cfg.draw_wrapped:
            self._draw_wrapped(canvas)
        elif cfg.is_dec:
            int_part = group_thousands(cfg.int_price, cfg.locale) + "."
            w, _ = canvas.measure_string(int_part, self._font)
            canvas.draw_string(f"{cfg.decimal_price:03d}{currency_symbol(cfg.currency)}",
                               cfg.x + w * DECIMAL_OFFSET, cfg.y,
                               self._font, self._color)
        elif cfg.is_int:
            canvas.draw_string(group_thousands(cfg.int_price, cfg.locale) + ".", cfg.x, cfg.y,
                               self._font, self._color)
        else:
            self._draw_prices(canvas)

    def _draw_wrapped(self, canvas: Canvas) -> None:
        cfg = self.config
        ax = cfg.x / canvas.width
        ay = cfg.y / canvas.height
        txt = ellipsis(cfg.text, cfg.max_character)
        canvas.draw_string_wrapped(txt, cfg.x, cfg.y, ax, ay, cfg.text_width, cfg.line_spacing,
                                   self._font, self._color)

    def _draw_prices(self, canvas: Canvas) -> None:
        cfg = self.config
        shown = cfg.promotion_price if cfg.promotion_price > 0 else cfg.price
        if shown <= 0:
            return
        shown_str = self.format_price(shown)
        canvas.draw_string(shown_str, cfg.x, cfg.y, self._font, self._color)

        if not (cfg.strike_full and cfg.price > cfg.promotion_price > 0):
            return
        w, _ = canvas.measure_string(shown_str, self._font)
        x = cfg.x + w
        price_str = self.format_price(cfg.price)
        w, h = canvas.measure_string(price_str, self._font)
        rule_y = cfg.y - h * STRIKE_POSITION
        canvas.draw_line(x, rule_y, x + w, rule_y, self._color)
        canvas.draw_string(price_str, x, cfg.y, self._font, self._color)
