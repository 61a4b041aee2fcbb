# domain/plugins/image.py
from typing import Any, ClassVar, Dict, Literal, Optional, Tuple

from PIL import Image
from pydantic import Field, field_validator

from photoforge.domain.canvas import Canvas
from photoforge.domain.errors import ConfigError, DrawError
from photoforge.domain.geometry import FRect, PixelRect
from photoforge.domain.plugins.base import Plugin, PluginConfig, bind_string
from photoforge.infrastructure.imaging.image_process import RESIZERS, decode_image
from photoforge.infrastructure.imaging.resize_cache import ResizeCache

HAlign = Literal["left", "left_margin", "center", "right", "right_margin"]
VAlign = Literal["top", "middle", "bottom"]
ResizeMode = Literal["clip", "crop", "stretch"]

IMAGE_TYPE_PRODUCT = "product"

_DEFAULTS = {"mode": "clip", "halign": "center", "valign": "middle"}


class ImageConfig(PluginConfig):
    BINDABLE: ClassVar[Tuple[str, ...]] = ("image",)

    type: Literal["image"] = "image"
    image: str = ""
    img_type: Literal["", "product"] = ""
    # explicit size for product photos
    width: int = 0
    height: int = 0
    # pixel margin for left_margin/right_margin, vertical offset for middle
    x: int = 0
    y: int = 0
    rect: FRect = Field(default_factory=FRect)
    mode: ResizeMode = "clip"
    halign: HAlign = "center"
    valign: VAlign = "middle"

    @field_validator("mode", "halign", "valign", mode="before")
    @classmethod
    def _empty_is_default(cls, v: Any, info) -> Any:
        if v is None or v == "":
            return _DEFAULTS[info.field_name]
        return v.lower() if isinstance(v, str) else v

    @field_validator("img_type", mode="before")
    @classmethod
    def _lower_type(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.lower() if isinstance(v, str) else v


class ImagePlugin(Plugin):
    """Draws a picture into a fractional rectangle of the canvas.

    A static image (no binding) is decoded once at configure time and keeps
    a resize cache, since every render asks for the same few sizes. A bound
    image is fetched when the template is bound and resized per render.
    """
    type = "image"
    config_class = ImageConfig

    def __init__(self, config: ImageConfig, assets):
        super().__init__(config, assets)
        self._img: Optional[Image.Image] = None
        self._cache: Optional[ResizeCache] = None

    @property
    def ready(self) -> bool:
        return self._img is not None

    async def _load(self) -> None:
        if not self.config.image:
            raise ConfigError("field image is required")
        data = await self.assets.get(self.config.image, tag="image")
        self._img = decode_image(data)

    async def configure(self) -> None:
        if "image" in self.binding:
            return
        await self._load()
        self._cache = ResizeCache()

    def _bind_field(self, field: str, value: Any) -> Dict[str, Any]:
        if field == "image":
            return {"image": bind_string(value)}
        return {}

    async def _rebind(self, source: "ImagePlugin", changed: Dict[str, Any]) -> None:
        await self._load()

    def _target_size(self, img: Image.Image, r: PixelRect) -> Tuple[int, int]:
        # product photos use the configured size unless they already fit the rect
        is_correct_size = img.size == (r.width, r.height)
        if not is_correct_size and self.config.img_type == IMAGE_TYPE_PRODUCT:
            return self.config.width, self.config.height
        return r.width, r.height

    def _halign(self, r: PixelRect) -> Tuple[float, float]:
        align, margin = self.config.halign, self.config.x
        if align == "center":
            return (r.left + r.right) / 2, 0.5
        if align == "right":
            return r.right, 1.0
        if align == "left_margin":
            return r.left + margin, margin / r.width
        if align == "right_margin":
            return r.right - margin, 1 - margin / r.width
        return r.left, 0.0

    def _valign(self, r: PixelRect) -> Tuple[float, float]:
        align = self.config.valign
        if align == "middle":
            return (r.top + r.bottom) / 2 + self.config.y, 0.5
        if align == "bottom":
            return r.bottom, 1.0
        return r.top, 0.0

    def apply(self, canvas: Canvas) -> None:
        if self._img is None:
            raise DrawError("image plugin applied before its image was loaded")
        r = self.config.rect.transform(canvas.width, canvas.height)
        if r.width <= 0 or r.height <= 0:
            raise DrawError(f"image rect {tuple(r)} is empty on a {canvas.width}x{canvas.height} canvas")

        w, h = self._target_size(self._img, r)
        resizer = RESIZERS[self.config.mode]
        if self._cache is not None:
            img = self._cache.get_resized(self._img, (w, h), variant=self.config.mode, resizer=resizer)
        else:
            img = resizer(self._img, w, h)

        x, ax = self._halign(r)
        y, ay = self._valign(r)
        canvas.draw_image_anchored(img, x, y, ax, ay, clip=r)
