import asyncio

import numpy as np
import pytest

from photoforge.domain.canvas import Canvas
from photoforge.domain.errors import ConfigError, DrawError, NotFoundError
from photoforge.domain.plugins.image import ImagePlugin
from photoforge.domain.plugins.registry import parse_plugin_config

from helpers import GREEN, RED, data_uri, make_image, png_bytes

TRANSPARENT = (0, 0, 0, 0)


def image_plugin(assets, **fields):
    p = ImagePlugin(parse_plugin_config("image", fields), assets)
    asyncio.run(p.configure())
    return p


def test_stretch_fills_the_whole_canvas(assets):
    p = image_plugin(assets, image=data_uri(make_image((30, 70))), mode="stretch")
    canvas = Canvas(200, 100, GREEN)
    p.apply(canvas)
    arr = np.asarray(canvas.image)
    assert (arr == np.array(RED, dtype=np.uint8)).all()


def test_clip_keeps_aspect_and_centers(assets):
    p = image_plugin(assets, image=data_uri(make_image((50, 50))))
    canvas = Canvas(200, 100)
    p.apply(canvas)
    # 100x100 square centered in the 200x100 canvas
    assert canvas.image.getpixel((50, 50)) == RED
    assert canvas.image.getpixel((149, 50)) == RED
    assert canvas.image.getpixel((49, 50)) == TRANSPARENT
    assert canvas.image.getpixel((150, 50)) == TRANSPARENT


def test_crop_is_clipped_to_rect(assets):
    p = image_plugin(assets, image=data_uri(make_image((50, 50))), mode="crop",
                     rect={"left": 0.25, "top": 0, "right": 0.75, "bottom": 0.5})
    canvas = Canvas(200, 100)
    p.apply(canvas)
    assert canvas.image.getpixel((50, 0)) == RED
    assert canvas.image.getpixel((149, 49)) == RED
    assert canvas.image.getpixel((49, 10)) == TRANSPARENT
    assert canvas.image.getpixel((100, 50)) == TRANSPARENT


def test_product_size_override(assets):
    p = image_plugin(assets, image=data_uri(make_image((80, 80))), imgType="product",
                     width=50, height=30, mode="stretch")
    canvas = Canvas(200, 100)
    p.apply(canvas)
    # drawn at 50x30 around the center, not stretched to the rect
    assert canvas.image.getpixel((75, 35)) == RED
    assert canvas.image.getpixel((124, 64)) == RED
    assert canvas.image.getpixel((74, 50)) == TRANSPARENT
    assert canvas.image.getpixel((100, 34)) == TRANSPARENT


def test_product_already_rect_sized_is_not_overridden(assets):
    p = image_plugin(assets, image=data_uri(make_image((200, 100))), imgType="product",
                     width=50, height=30, mode="stretch")
    canvas = Canvas(200, 100)
    p.apply(canvas)
    assert canvas.image.getpixel((0, 0)) == RED
    assert canvas.image.getpixel((199, 99)) == RED


@pytest.mark.parametrize("halign,x,edge", [
    ("left", 0, 0),
    ("right", 0, 180),
    ("left_margin", 10, 9),
])
def test_horizontal_alignment(assets, halign, x, edge):
    p = image_plugin(assets, image=data_uri(make_image((20, 20))), imgType="product",
                     width=20, height=20, mode="stretch", halign=halign, x=x)
    canvas = Canvas(200, 100)
    p.apply(canvas)
    assert canvas.image.getpixel((edge, 50)) == RED
    assert canvas.image.getpixel((edge + 19, 50)) == RED
    if edge > 0:
        assert canvas.image.getpixel((edge - 1, 50)) == TRANSPARENT
    if edge + 20 < canvas.width:
        assert canvas.image.getpixel((edge + 20, 50)) == TRANSPARENT


@pytest.mark.parametrize("valign,top", [("top", 0), ("middle", 40), ("bottom", 80)])
def test_vertical_alignment(assets, valign, top):
    p = image_plugin(assets, image=data_uri(make_image((20, 20))), imgType="product",
                     width=20, height=20, mode="stretch", valign=valign)
    canvas = Canvas(200, 100)
    p.apply(canvas)
    assert canvas.image.getpixel((100, top)) == RED
    assert canvas.image.getpixel((100, top + 19)) == RED


def test_static_image_uses_resize_cache(assets):
    p = image_plugin(assets, image=data_uri(make_image((50, 50))), mode="stretch")
    p.apply(Canvas(200, 100))
    p.apply(Canvas(200, 100))
    p.apply(Canvas(100, 50))
    assert len(p._cache) == 2


def test_bound_image_is_loaded_at_bind_time(assets):
    assets.files["photo.png"] = png_bytes(make_image((10, 10)))
    p = image_plugin(assets, mode="stretch", binding={"image": "source"})
    assert assets.fetches == []
    assert not p.ready

    bound = asyncio.run(p.bind({"source": "photo.png"}))
    assert assets.fetches == [("photo.png", "image")]
    assert p._img is None
    canvas = Canvas(20, 20)
    bound.apply(canvas)
    assert canvas.image.getpixel((10, 10)) == RED


def test_bound_image_not_found_propagates(assets):
    p = image_plugin(assets, binding={"image": "source"})
    with pytest.raises(NotFoundError):
        asyncio.run(p.bind({"source": "nothere.png"}))


def test_static_image_is_required(assets):
    p = ImagePlugin(parse_plugin_config("image", {}), assets)
    with pytest.raises(ConfigError):
        asyncio.run(p.configure())


def test_empty_rect_fails_to_draw(assets):
    p = image_plugin(assets, image=data_uri(make_image()), rect={"left": 0.5, "right": 0.5})
    with pytest.raises(DrawError):
        p.apply(Canvas(100, 100))
