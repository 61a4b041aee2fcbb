from photoforge.config.logger import get_logger
from photoforge.domain.errors import (
    BindError,
    ConfigError,
    DrawError,
    NotFoundError,
    RenderError,
    TransportError,
    UpstreamUnavailableError,
    fetch_error_for_status,
)


def test_fetch_error_for_status():
    e = fetch_error_for_status(404, b"x", "http://a/b")
    assert isinstance(e, NotFoundError)
    assert (e.status_code, e.body, e.uri) == (404, b"x", "http://a/b")

    e = fetch_error_for_status(502)
    assert isinstance(e, UpstreamUnavailableError)
    assert e.status_code == 502


def test_render_error_status_codes():
    assert RenderError("t", NotFoundError("gone", 404)).status_code == 404
    assert RenderError("t", UpstreamUnavailableError("down", 502)).status_code == 503
    assert RenderError("t", TransportError("timeout")).status_code == 503
    assert RenderError("t", BindError("bad")).status_code == 400
    assert RenderError("t", ConfigError("bad")).status_code == 400
    assert RenderError("t", DrawError("empty")).status_code == 500
    assert RenderError("t", RuntimeError("boom")).status_code == 500


def test_config_error_names_template_and_plugin():
    e = ConfigError("field image is required", template="card", plugin_index=2)
    assert str(e) == 'template "card", plugin #2: field image is required'
    assert str(ConfigError("plain")) == "plain"


def test_get_logger_attaches_one_handler():
    a = get_logger("photoforge.tests.once", tag="T")
    b = get_logger("photoforge.tests.once")
    assert a is b
    assert len(a.handlers) == 1
    assert a.propagate is False
