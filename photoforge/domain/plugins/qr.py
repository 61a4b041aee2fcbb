# domain/plugins/qr.py
from typing import Any, ClassVar, Dict, Literal, Optional, Tuple

import qrcode
from qrcode.exceptions import DataOverflowError
from PIL import Image
from pydantic import Field, field_validator

from photoforge.domain.canvas import Canvas
from photoforge.domain.errors import ConfigError
from photoforge.domain.geometry import FPoint
from photoforge.domain.plugins.base import Plugin, PluginConfig, bind_string
from photoforge.infrastructure.imaging.image_process import RGBA, TRANSPARENT, parse_color

RecoveryLevel = Literal["low", "medium", "quartile", "highest"]

RECOVERY_LEVELS = {
    "low": qrcode.constants.ERROR_CORRECT_L,
    "medium": qrcode.constants.ERROR_CORRECT_M,
    "quartile": qrcode.constants.ERROR_CORRECT_Q,
    "highest": qrcode.constants.ERROR_CORRECT_H,
}
# numeric levels accepted in templates, lowest first
_RECOVERY_BY_INDEX = ("low", "medium", "quartile", "highest")

WHITE: RGBA = (255, 255, 255, 255)
DUMMY_TEXT = "dummy"


def _recovery_name(v: Any) -> Any:
    if v is None or v == "":
        return "low"
    if isinstance(v, str) and v.strip().isdigit():
        v = int(v)
    if isinstance(v, int) and not isinstance(v, bool):
        if 0 <= v < len(_RECOVERY_BY_INDEX):
            return _RECOVERY_BY_INDEX[v]
        raise ValueError(f"field recovery must be >= 0 and <= {len(_RECOVERY_BY_INDEX) - 1}")
    return v.strip().lower() if isinstance(v, str) else v


class QrConfig(PluginConfig):
    BINDABLE: ClassVar[Tuple[str, ...]] = ("text",)

    type: Literal["qr"] = "qr"
    text: str = Field("", validate_default=True)
    color: str = ""
    recovery: RecoveryLevel = "low"
    anchor: FPoint = Field(default_factory=FPoint)
    # side of the code relative to the canvas width, (0, 1]
    size: float

    @field_validator("recovery", mode="before")
    @classmethod
    def _recovery_index(cls, v: Any) -> Any:
        return _recovery_name(v)

    @field_validator("size")
    @classmethod
    def _size_range(cls, v: float) -> float:
        if v <= 0 or v > 1:
            raise ValueError("field size must be in (0, 1]")
        return v

    @field_validator("text")
    @classmethod
    def _dummy_text(cls, v: str) -> str:
        return v or DUMMY_TEXT


def build_modules(text: str, recovery: str, color: RGBA) -> Image.Image:
    """One pixel per QR module, no quiet zone, transparent background."""
    qr = qrcode.QRCode(error_correction=RECOVERY_LEVELS[recovery], box_size=1, border=0)
    qr.add_data(text)
    try:
        qr.make(fit=True)
    except DataOverflowError as e:
        raise ConfigError(f"qr payload too long ({len(text)} chars)") from e
    matrix = qr.get_matrix()
    n = len(matrix)
    img = Image.new("RGBA", (n, n), TRANSPARENT)
    img.putdata([color if cell else TRANSPARENT for row in matrix for cell in row])
    return img


def scale_modules(modules: Image.Image, size: int) -> Image.Image:
    """Scale to a size x size raster with whole-pixel modules, centered."""
    n = modules.width
    size = max(size, n)
    ppm = size // n
    scaled = modules.resize((n * ppm, n * ppm), Image.Resampling.NEAREST)
    if scaled.width == size:
        return scaled
    out = Image.new("RGBA", (size, size), TRANSPARENT)
    offset = (size - scaled.width) // 2
    out.paste(scaled, (offset, offset))
    return out


class QrPlugin(Plugin):
    type = "qr"
    config_class = QrConfig

    def __init__(self, config: QrConfig, assets):
        super().__init__(config, assets)
        self._modules: Optional[Image.Image] = None
        self._color: RGBA = WHITE

    @property
    def ready(self) -> bool:
        return self._modules is not None

    async def configure(self) -> None:
        self._color = parse_color(self.config.color, default=WHITE)
        self._modules = build_modules(self.config.text, self.config.recovery, self._color)

    def _bind_field(self, field: str, value: Any) -> Dict[str, Any]:
        if field == "text":
            return {"text": bind_string(value) or DUMMY_TEXT}
        return {}

    async def _rebind(self, source: "QrPlugin", changed: Dict[str, Any]) -> None:
        self._color = source._color
        self._modules = build_modules(self.config.text, self.config.recovery, self._color)

    def apply(self, canvas: Canvas) -> None:
        x, y = self.config.anchor.transform(canvas.width, canvas.height)
        img = scale_modules(self._modules, int(self.config.size * canvas.width))
        canvas.draw_image_anchored(img, x, y, 0.5, 0.5)
