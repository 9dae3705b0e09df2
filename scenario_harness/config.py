import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidConfigError

ENV_PREFIX = "HARNESS_"


class HarnessConfig(BaseModel):
    """Settings shared by the suite, its action context and the CLI.

    Defaults match a headless local run. Tests build instances directly;
    the CLI and the MCP server go through ``from_env``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = ""
    api_base_url: str = ""
    headless: bool = True
    slow_mo_ms: int = Field(default=0, ge=0)
    viewport_width: int = Field(default=1280, gt=0)
    viewport_height: int = Field(default=720, gt=0)
    default_timeout_ms: int = Field(default=30000, gt=0)
    http_timeout_s: float = Field(default=10.0, gt=0)
    reset_context_on_timeout: bool = True
    report_path: Optional[str] = None

    @classmethod
    def build(cls, **values) -> "HarnessConfig":
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidConfigError(str(e)) from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarnessConfig":
        """Read HARNESS_<FIELD> variables, e.g. HARNESS_BASE_URL"""
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            key = ENV_PREFIX + field_name.upper()
            if key in environ:
                values[field_name] = environ[key]
        return cls.build(**values)

    def with_overrides(self, **changes) -> "HarnessConfig":
        changes = {k: v for k, v in changes.items() if v is not None}
        return self.build(**{**self.model_dump(), **changes})
