# domain/plugins/registry.py
from typing import Any, Dict, List, Mapping

from photoforge.domain.errors import ConfigError, FetchError
from photoforge.domain.plugins.base import Plugin, PluginConfig
from photoforge.domain.plugins.image import ImagePlugin
from photoforge.domain.plugins.qr import QrPlugin
from photoforge.domain.plugins.text import TextPlugin
from photoforge.domain.schema import decode
from photoforge.infrastructure.assets import AssetSource

PLUGIN_TYPES = {
    ImagePlugin.type: ImagePlugin,
    TextPlugin.type: TextPlugin,
    QrPlugin.type: QrPlugin,
}


def parse_plugin_config(type_tag: str, fields: Mapping[str, Any]) -> PluginConfig:
    plugin_class = PLUGIN_TYPES.get(type_tag)
    if plugin_class is None:
        raise ConfigError(f'plugin type "{type_tag}" not found, expected one of {", ".join(PLUGIN_TYPES)}')
    return decode(plugin_class.config_class, {**fields, "type": type_tag}, f"{type_tag} plugin")


def new_plugins_from_config(configs: List[Dict[str, Any]], assets: AssetSource) -> List[Plugin]:
    plugins = []
    for i, m in enumerate(configs or []):
        if not isinstance(m, dict) or not isinstance(m.get("type"), str):
            raise ConfigError("plugin has no type", plugin_index=i)
        try:
            config = parse_plugin_config(m["type"].lower(), m)
        except ConfigError as e:
            raise ConfigError(str(e), plugin_index=i) from e
        plugins.append(PLUGIN_TYPES[config.type](config, assets))
    return plugins


async def configure_plugins(plugins: List[Plugin]) -> None:
    for i, p in enumerate(plugins):
        try:
            await p.configure()
        except (ConfigError, FetchError) as e:
            raise ConfigError(f"configure {p.type}: {e}", plugin_index=i) from e
