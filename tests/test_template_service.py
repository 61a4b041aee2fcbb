import asyncio
import io
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image

from photoforge.domain.errors import BindError, NotFoundError, RenderError
from photoforge.domain.template import parse_template
from photoforge.domain.template_service import TemplateService

from helpers import make_image, png_bytes

CARD = b"""
allWidths: [120, 240]
widthHeightRatio: 1.5
plugins:
  - type: image
    mode: stretch
    binding: {image: source}
  - type: text
    fontUri: default
    fontSize: 12
    x: 5
    y: 70
    binding: {price: price}
"""


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=2)
    yield pool
    pool.shutdown(wait=True)


def render(assets, executor, values, width=None, fmt="jpeg"):
    async def run():
        template = await parse_template("card", CARD, assets)
        return await TemplateService(assets, executor).render_template(template, values, width, fmt)
    return asyncio.run(run())


def test_render_jpeg(assets, executor):
    assets.files["photo.png"] = png_bytes(make_image((30, 30)))
    out = render(assets, executor, {"source": "photo.png", "price": "15000"}, 240)
    img = Image.open(io.BytesIO(out))
    assert img.format == "JPEG"
    assert img.size == (240, 160)


def test_render_png_keeps_alpha(assets, executor):
    assets.files["photo.png"] = png_bytes(make_image((30, 30)))
    out = render(assets, executor, {"source": "photo.png"}, fmt="png")
    img = Image.open(io.BytesIO(out))
    assert img.format == "PNG"
    assert img.mode == "RGBA"
    assert img.size == (120, 80)


def test_missing_source_is_404(assets, executor):
    with pytest.raises(RenderError) as exc:
        render(assets, executor, {"source": "nothere.png"})
    assert isinstance(exc.value.cause, NotFoundError)
    assert exc.value.status_code == 404
    assert exc.value.template == "card"


def test_bad_value_is_400(assets, executor):
    assets.files["photo.png"] = png_bytes(make_image((30, 30)))
    with pytest.raises(RenderError) as exc:
        render(assets, executor, {"source": "photo.png", "price": "cheap"})
    assert isinstance(exc.value.cause, BindError)
    assert exc.value.status_code == 400
