from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ValidationError, field_validator


class SettingsSchema(BaseModel):
    timezone: str = "UTC"
    weight_unit: str = "kg"
    primary_weight: float = 0.7
    secondary_weight: float = 0.3
    focus_ratio: float = 2.0
    bar_scale: float = 0.75

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {value}")
        return value

    @field_validator("weight_unit")
    @classmethod
    def known_unit(cls, value: str) -> str:
        if value not in {"kg", "lb"}:
            raise ValueError("weight_unit must be 'kg' or 'lb'")
        return value

    @field_validator("primary_weight", "secondary_weight", "bar_scale")
    @classmethod
    def unit_interval(cls, value: float) -> float:
        if not 0 <= value <= 1:
            raise ValueError("value must be between 0 and 1")
        return value

    @field_validator("focus_ratio")
    @classmethod
    def positive_ratio(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("focus_ratio must be positive")
        return value


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
