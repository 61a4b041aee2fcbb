# domain/schema.py
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from photoforge.domain.errors import ConfigError


def fold_key(key: Any) -> str:
    return str(key).lower().replace("_", "")


class YamlModel(BaseModel):
    """Base for everything decoded from template YAML.

    Keys are matched case-insensitively and with or without underscores, so
    `fontUri`, `fonturi` and `font_uri` all land on the same field. Values are
    coerced the lax pydantic way ("12" -> 12). Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _match_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        lookup: Dict[str, str] = {}
        for name, field in cls.model_fields.items():
            alias = field.alias or name
            lookup[fold_key(name)] = alias
            lookup[fold_key(alias)] = alias
        return {lookup.get(fold_key(k), k): v for k, v in data.items()}


def decode(model: type, data: Any, what: str):
    """Validate `data` into `model`, turning validation failures into ConfigError."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{what} must be a mapping, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc']) or what}: {err['msg']}" for err in e.errors())
        raise ConfigError(f"invalid {what}: {problems}") from e
