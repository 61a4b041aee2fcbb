from photoforge.domain.geometry import FPoint, FRect, PixelRect
from photoforge.domain.schema import decode


def test_empty_rect_covers_the_canvas():
    r = FRect()
    assert (r.left, r.top, r.right, r.bottom) == (0, 0, 1, 1)
    assert r.transform(200, 100) == PixelRect(0, 0, 200, 100)


def test_zero_right_or_bottom_means_full_extent():
    r = decode(FRect, {"left": 0.25, "right": 0.75}, "rect")
    assert (r.left, r.top, r.right, r.bottom) == (0.25, 0, 0.75, 1)
    assert r.transform(400, 300) == PixelRect(100, 0, 300, 300)


def test_transform_rounds_to_pixels():
    r = FRect(left=0.333, top=0.5, right=0.667, bottom=1)
    assert r.transform(100, 10) == PixelRect(33, 5, 67, 10)
    assert r.transform(100, 10).width == 34


def test_keys_are_case_insensitive():
    r = decode(FRect, {"LEFT": "0.1", "Right": 0.9, "bottom": 0.5}, "rect")
    assert (r.left, r.right, r.bottom) == (0.1, 0.9, 0.5)


def test_point_transform():
    assert FPoint(x=0.5, y=0.25).transform(200, 100) == (100, 25)
    assert FPoint().transform(200, 100) == (0, 0)
