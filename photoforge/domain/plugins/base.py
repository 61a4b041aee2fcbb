# domain/plugins/base.py
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Tuple

from pydantic import field_validator

from photoforge.domain.canvas import Canvas
from photoforge.domain.errors import BindError, ConfigError
from photoforge.domain.schema import YamlModel, fold_key
from photoforge.infrastructure.assets import AssetSource

BindValues = Mapping[str, Any]


def bind_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def bind_int(value: Any, field: str) -> int:
    """Coerce a request value to int; empty or missing values count as 0."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    s = bind_string(value).strip()
    if s == "":
        return 0
    try:
        return int(s)
    except ValueError:
        raise BindError(f'field {field}: "{s}" is not an integer') from None


class PluginConfig(YamlModel):
    """Declared fields of one plugin, as written in the template.

    `binding` maps a bindable field name to the request value key that
    supplies it at render time. Both sides are lower-cased at load time and
    field names outside BINDABLE are rejected.
    """
    BINDABLE: ClassVar[Tuple[str, ...]] = ()

    type: str
    binding: Dict[str, str] = {}

    @field_validator("binding", mode="before")
    @classmethod
    def _normalize_binding(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {str(k).lower(): str(val).lower() for k, val in v.items()}
        return v

    @field_validator("binding")
    @classmethod
    def _check_binding(cls, v: Dict[str, str]) -> Dict[str, str]:
        known = {fold_key(name): name for name in cls.BINDABLE}
        resolved = {}
        for field, key in v.items():
            name = known.get(fold_key(field))
            if name is None:
                raise ValueError(f'field "{field}" is not bindable, expected one of {", ".join(cls.BINDABLE)}')
            resolved[name] = key
        return resolved


class Plugin(ABC):
    """One drawing operation of a template.

    Lifecycle: `configure()` once at template load, `bind(values)` once per
    render, `apply(canvas)` on the bound instance. A plugin without bindings
    is never copied and, once configured, is shared read-only by all renders.
    """

    type: ClassVar[str]
    config_class: ClassVar[type]

    def __init__(self, config: PluginConfig, assets: AssetSource):
        self.config = config
        self.assets = assets

    def __repr__(self) -> str:
        return f"<{type(self).__name__} binding={self.config.binding}>"

    @property
    def binding(self) -> Dict[str, str]:
        return self.config.binding

    @abstractmethod
    async def configure(self) -> None:
        """One-time setup from the declared fields; raises ConfigError."""

    @abstractmethod
    def apply(self, canvas: Canvas) -> None:
        """Paint onto `canvas`; must not keep a reference to it."""

    @abstractmethod
    def _bind_field(self, field: str, value: Any) -> Dict[str, Any]:
        """Typed setter: coerce one request value into config field updates."""

    @abstractmethod
    async def _rebind(self, source: "Plugin", changed: Dict[str, Any]) -> None:
        """Finish setting up a bound copy of `source` after `changed` fields moved."""

    @property
    def ready(self) -> bool:
        """Whether this instance can be applied as-is."""
        return True

    async def bind(self, values: BindValues) -> "Plugin":
        if not self.binding:
            return self

        updates: Dict[str, Any] = {}
        for field, key in self.binding.items():
            updates.update(self._bind_field(field, values.get(key)))

        changed = {k: v for k, v in updates.items() if getattr(self.config, k) != v}
        if not changed and self.ready:
            return self

        bound = type(self)(self.config.model_copy(update=changed), self.assets)
        try:
            await bound._rebind(self, changed)
        except ConfigError as e:
            raise BindError(f"bind {self.type}: {e}") from e
        return bound
