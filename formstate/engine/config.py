"""Configuration for a form engine."""

from pydantic import BaseModel, ConfigDict, Field


class FormConfig(BaseModel):
    """Behaviour switches for one FormStateEngine."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    validate_on_change: bool = True
    validate_on_blur: bool = True
    validate_on_submit: bool = True
    allow_nested_fields: bool = True
    debounce_ms: int = Field(default=300, ge=0)
    trim_string_values: bool = True
    auto_trim_on_blur: bool = True

    @property
    def debounce_seconds(self) -> float:
        """Debounce delay in seconds, for asyncio.sleep."""
        return self.debounce_ms / 1000

    def merged(self, **overrides: object) -> "FormConfig":
        """Return a validated copy with some settings replaced."""
        if not overrides:
            return self
        return FormConfig.model_validate({**self.model_dump(), **overrides})
