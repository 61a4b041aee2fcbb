import asyncio

import numpy as np
import pytest

from photoforge.domain.errors import ConfigError
from photoforge.domain.schema import decode
from photoforge.domain.template import Template, TemplateConfig, parse_template
from photoforge.infrastructure.template_loader import load_templates

from helpers import GREEN, RED, data_uri, make_image

CARD = """
allWidths: [200, 400]
widthHeightRatio: 2
backgroundColor: "#00ff00"
plugins:
  - type: image
    image: "{image}"
    mode: stretch
    rect: {{left: 0, top: 0, right: 0.5}}
  - type: text
    fontUri: default
    fontSize: 16
    color: "#ffffff"
    x: 110
    y: 60
    binding:
      text: name
"""


def card(assets, name="card"):
    raw = CARD.format(image=data_uri(make_image((10, 10), RED))).encode()
    return asyncio.run(parse_template(name, raw, assets))


def test_select_width():
    t = Template("t", [300, 600])
    assert t.select_width(600) == 600
    assert t.select_width(300) == 300
    assert t.select_width(1000) == 300
    assert t.select_width(None) == 300
    assert t.select_width(0) == 300


def test_derive_height():
    assert Template("t", [600], 0.8).derive_height(600) == 750
    assert Template("t", [600], 1.5).derive_height(600) == 400
    assert Template("t", [600], 0).derive_height(600) == 600


def test_widths_are_required():
    with pytest.raises(ConfigError):
        Template("t", [])
    with pytest.raises(ConfigError):
        decode(TemplateConfig, {"widthHeightRatio": 1}, "template")
    with pytest.raises(ConfigError):
        decode(TemplateConfig, {"allWidths": [100, -1]}, "template")


def test_non_positive_ratio_means_square():
    cfg = decode(TemplateConfig, {"allWidths": [100], "widthHeightRatio": 0}, "template")
    assert cfg.width_height_ratio == 1


def test_render_uses_selected_width(assets):
    t = card(assets)
    img = asyncio.run(t.render({"name": "Alice"}, 400))
    assert img.size == (400, 200)
    img = asyncio.run(t.render({"name": "Alice"}, 123))
    assert img.size == (200, 100)
    # left half is the stretched image, the rest is background
    assert img.getpixel((10, 10)) == RED
    assert img.getpixel((190, 10)) == GREEN


def test_binding_is_idempotent(assets):
    t = card(assets)
    values = {"name": "Alice"}
    first = np.asarray(asyncio.run(t.render(values)))
    second = np.asarray(asyncio.run(t.render(values)))
    assert np.array_equal(first, second)

    # a render with other values in between does not leak into the template
    asyncio.run(t.render({"name": "Bob"}))
    third = np.asarray(asyncio.run(t.render(values)))
    assert np.array_equal(first, third)
    assert t.plugins[1].config.text == ""


def test_unbound_plugins_are_reused(assets):
    t = card(assets)
    bound = asyncio.run(t.bind({"name": "Alice"}))
    assert bound[0] is t.plugins[0]
    assert bound[1] is not t.plugins[1]
    # nothing to change: the configured text plugin is reused too
    assert asyncio.run(t.bind({}))[1] is t.plugins[1]


def test_unknown_plugin_type_names_template_and_index(assets):
    raw = b"allWidths: [100]\nplugins:\n  - type: text\n    fontUri: default\n    fontSize: 10\n  - type: sparkle\n"
    with pytest.raises(ConfigError) as exc:
        asyncio.run(parse_template("bad", raw, assets))
    assert exc.value.template == "bad"
    assert exc.value.plugin_index == 1
    assert "sparkle" in str(exc.value)


def test_plugin_without_type(assets):
    with pytest.raises(ConfigError) as exc:
        asyncio.run(parse_template("bad", b"allWidths: [100]\nplugins:\n  - text: hi\n", assets))
    assert exc.value.plugin_index == 0


def test_configure_failure_is_config_error(assets):
    raw = b"allWidths: [100]\nplugins:\n  - type: image\n    image: nothere.png\n"
    with pytest.raises(ConfigError) as exc:
        asyncio.run(parse_template("bad", raw, assets))
    assert exc.value.plugin_index == 0


def test_invalid_yaml(assets):
    with pytest.raises(ConfigError):
        asyncio.run(parse_template("bad", b"allWidths: [100\n", assets))


def test_loader_skips_broken_templates(tmp_path, assets):
    (tmp_path / "good.yaml").write_text("allWidths: [100]\n")
    (tmp_path / "broken.yaml").write_text("plugins: []\n")
    (tmp_path / "notes.txt").write_text("ignored")
    templates = asyncio.run(load_templates(assets, str(tmp_path), "generic"))
    assert list(templates) == ["good"]
    assert templates["good"].name == "good"


def test_loader_missing_directory(tmp_path, assets):
    assert asyncio.run(load_templates(assets, str(tmp_path / "none"), "qr")) == {}
