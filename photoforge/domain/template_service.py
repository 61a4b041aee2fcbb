# domain/template_service.py
import asyncio
import os
import time
import traceback
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import psutil
from PIL import Image

from photoforge.config.logger import get_logger
from photoforge.config.settings import settings
from photoforge.domain.errors import PhotoforgeError, RenderError
from photoforge.domain.frame_template import FrameTemplate
from photoforge.domain.plugins.base import BindValues
from photoforge.domain.template import Template
from photoforge.infrastructure.assets import AssetSource
from photoforge.infrastructure.imaging.image_process import decode_image, encode_image

logger = get_logger(__name__)


def _memory_mb() -> Optional[float]:
    try:
        return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024
    except psutil.Error as mem_error:
        logger.warning(f"Could not get memory info: {mem_error}")
        return None


class TemplateService:
    """Runs renders: binding on the event loop, drawing and encoding on the CPU pool."""

    def __init__(self, assets: AssetSource, cpu_executor: ThreadPoolExecutor):
        self.assets = assets
        self.cpu_executor = cpu_executor

    def _compose_and_encode(self, template: Template, plugins, width: Optional[int], fmt: str) -> bytes:
        img = template.compose(plugins, width)
        try:
            return encode_image(img, fmt, settings.JPEG_QUALITY)
        finally:
            img.close()

    async def render_template(self, template: Template, values: BindValues, width: Optional[int] = None,
                              fmt: str = "jpeg") -> bytes:
        start = time.perf_counter()
        try:
            plugins = await template.bind(values)
            loop = asyncio.get_running_loop()
            out = await loop.run_in_executor(self.cpu_executor, self._compose_and_encode,
                                             template, plugins, width, fmt)
        except PhotoforgeError as e:
            logger.warning(f"render {template.name} failed: {type(e).__name__}: {e}")
            raise RenderError(template.name, e) from e
        except Exception as e:
            logger.error(f"render {template.name} crashed: {e}\n{traceback.format_exc()}")
            raise RenderError(template.name, e) from e

        duration = time.perf_counter() - start
        memory_mb = _memory_mb()
        if memory_mb is None:
            logger.info(f"render {template.name} done in {duration:.3f}s, {len(out)} bytes")
        else:
            logger.info(f"render {template.name} done in {duration:.3f}s, {len(out)} bytes, memory {memory_mb:.1f}MB")
        return out

    def _generate_frame(self, template: FrameTemplate, data: bytes, price: Optional[int],
                        promotion_price: Optional[int]) -> bytes:
        src = decode_image(data)
        img: Image.Image = None
        try:
            if price is None:
                img = template.generate_no_price(src)
            else:
                img = template.generate(src, price, promotion_price)
            return encode_image(img, "jpeg", settings.JPEG_QUALITY)
        finally:
            src.close()
            if img is not None:
                img.close()

    async def render_frame(self, template: FrameTemplate, source_uri: str, price: Optional[int] = None,
                           promotion_price: Optional[int] = None) -> bytes:
        """Fetch the source photo and draw the frame (and prices) over it.

        `price=None` draws the frame only. A missing, non-positive or
        too-large promotion price falls back to `price`.
        """
        if price is not None and (not promotion_price or promotion_price <= 0 or promotion_price > price):
            promotion_price = price

        start = time.perf_counter()
        try:
            data = await self.assets.get(source_uri, tag="facebook")
            loop = asyncio.get_running_loop()
            out = await loop.run_in_executor(self.cpu_executor, self._generate_frame,
                                             template, data, price, promotion_price)
        except PhotoforgeError as e:
            logger.warning(f"frame {template.name} failed for {source_uri}: {type(e).__name__}: {e}")
            raise RenderError(template.name, e) from e
        except Exception as e:
            logger.error(f"frame {template.name} crashed: {e}\n{traceback.format_exc()}")
            raise RenderError(template.name, e) from e

        logger.info(f"frame {template.name} done in {time.perf_counter() - start:.3f}s, {len(out)} bytes")
        return out
