# domain/template.py
from typing import Any, Dict, List, Optional

import yaml
from PIL import Image
from pydantic import field_validator

from photoforge.config.logger import get_logger
from photoforge.domain.binder import bind_plugins
from photoforge.domain.canvas import Canvas
from photoforge.domain.errors import ConfigError
from photoforge.domain.plugins.base import BindValues, Plugin
from photoforge.domain.plugins.registry import configure_plugins, new_plugins_from_config
from photoforge.domain.schema import YamlModel, decode
from photoforge.infrastructure.assets import AssetSource
from photoforge.infrastructure.imaging.image_process import RGBA, parse_color

logger = get_logger(__name__)


class TemplateConfig(YamlModel):
    # possible widths, default width = all_widths[0]
    all_widths: List[int]
    # height = width / ratio
    width_height_ratio: float = 1
    background_color: str = ""
    plugins: List[Dict[str, Any]] = []

    @field_validator("all_widths")
    @classmethod
    def _widths(cls, v: List[int]) -> List[int]:
        if len(v) < 1:
            raise ValueError("allWidths is required")
        if any(w <= 0 for w in v):
            raise ValueError("allWidths must be positive")
        return v

    @field_validator("width_height_ratio")
    @classmethod
    def _ratio(cls, v: float) -> float:
        return v if v > 0 else 1


class Template:
    """An ordered list of configured plugins plus the canvas sizing policy.

    A template has no canvas of its own: the width is chosen per render and
    the height always follows from it.
    """

    def __init__(self, name: str, allowed_widths: List[int], ratio: float = 1,
                 background: Optional[RGBA] = None, plugins: Optional[List[Plugin]] = None):
        if not allowed_widths:
            raise ConfigError("allWidths is required", template=name)
        self.name = name
        self.allowed_widths = list(allowed_widths)
        self.ratio = ratio if ratio > 0 else 1
        self.background = background
        self.plugins: List[Plugin] = plugins or []

    def __repr__(self) -> str:
        return f"<Template {self.name} widths={self.allowed_widths} plugins={len(self.plugins)}>"

    def select_width(self, requested: Optional[int]) -> int:
        if requested in self.allowed_widths:
            return requested
        return self.allowed_widths[0]

    def derive_height(self, width: int) -> int:
        return int(width / self.ratio)

    async def bind(self, values: BindValues) -> List[Plugin]:
        return await bind_plugins(self.plugins, values)

    def compose(self, plugins: List[Plugin], requested_width: Optional[int] = None) -> Image.Image:
        """Draw already-bound plugins, in order, onto a fresh canvas."""
        width = self.select_width(requested_width)
        canvas = Canvas(width, self.derive_height(width), self.background)
        for p in plugins:
            p.apply(canvas)
        return canvas.image

    async def render(self, values: BindValues, requested_width: Optional[int] = None) -> Image.Image:
        return self.compose(await self.bind(values), requested_width)


async def parse_template(name: str, raw: bytes, assets: AssetSource) -> Template:
    """Build and configure a template from its YAML source."""
    try:
        m = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}", template=name) from e

    try:
        cfg = decode(TemplateConfig, m, "template")
        background = parse_color(cfg.background_color) if cfg.background_color else None
        plugins = new_plugins_from_config(cfg.plugins, assets)
        await configure_plugins(plugins)
    except ConfigError as e:
        e.template = name
        raise

    logger.debug(f"parsed template {name}: widths={cfg.all_widths} plugins={len(plugins)}")
    return Template(name, cfg.all_widths, cfg.width_height_ratio, background, plugins)
