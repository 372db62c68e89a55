"""Application configuration loaded from constructor args, environment, .env and YAML."""

import os
import re
from functools import lru_cache

from pydantic import BaseModel, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

# Path of the optional YAML config file; overridable for deployments and tests.
CONFIG_FILE_ENV = "ROLEGATE_CONFIG"
DEFAULT_CONFIG_FILE = "config/config.yaml"

DEFAULT_CASBIN_MODEL = """[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = (p.sub == "*" || g(r.sub, p.sub)) && (p.obj == "*" || r.obj == p.obj) && (p.act == "*" || r.act == p.act)
"""

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, None: 1}


def parse_duration(value: str) -> float:
    """Parse a duration like '30s', '1m', '2h' or '500ms' into seconds."""
    match = _DURATION_RE.match(value or "")
    if match is None:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


class AppSettings(BaseModel):
    default_role: str = "user"

    @field_validator("default_role")
    @classmethod
    def validate_default_role(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("app.default_role must be non-empty")
        return v.strip()


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    allowed_origins: list[str] = ["http://localhost:3000"]
    request_timeout_seconds: float = 30.0
    shutdown_grace_seconds: float = 5.0

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("server.port must be between 1 and 65535")
        return v

    @field_validator("request_timeout_seconds", "shutdown_grace_seconds")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be greater than 0")
        return v


class DatabaseSettings(BaseModel):
    # When set, url wins over the discrete connection keys (e.g. sqlite:// for dev/tests).
    url: str | None = None
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = SecretStr("postgres")
    dbname: str = "rolegate"
    sslmode: str = "disable"
    max_idle_conns: int = 10
    max_open_conns: int = 100
    conn_max_lifetime_minutes: int = 60
    echo: bool = False

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("max_idle_conns", "max_open_conns", "conn_max_lifetime_minutes")
    @classmethod
    def validate_pool_sizes(cls, v: int) -> int:
        if v < 1:
            raise ValueError("database pool settings must be at least 1")
        return v


class JWTSettings(BaseModel):
    secret: SecretStr
    expiration_seconds: int = 86400
    algorithm: str = "HS256"

    @field_validator("secret")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("jwt.secret must be set and non-empty")
        return v

    @field_validator("expiration_seconds")
    @classmethod
    def validate_expiration(cls, v: int) -> int:
        if v < 1:
            raise ValueError("jwt.expiration_seconds must be greater than 0")
        return v

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        if not v or not v.strip().upper().startswith("HS"):
            raise ValueError("jwt.algorithm must be an HMAC algorithm (HS256, HS384, HS512)")
        return v.strip().upper()


class PasswordSettings(BaseModel):
    cost: int = 12

    @field_validator("cost")
    @classmethod
    def validate_cost(cls, v: int) -> int:
        if v < 4 or v > 31:
            raise ValueError("password.cost must be between 4 and 31")
        return v


class CasbinSettings(BaseModel):
    model: str = DEFAULT_CASBIN_MODEL

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        # Single-line YAML and env values carry escaped newlines.
        v = v.replace("\\n", "\n")
        if not v.strip():
            raise ValueError("casbin.model must be non-empty")
        return v


class LogSettings(BaseModel):
    level: str = "info"
    filename: str | None = "./logs/app.log"
    max_size_mb: int = 10
    max_backups: int = 5
    max_age_days: int = 30
    compress: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().lower()
        if level == "warn":
            level = "warning"
        if level not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError("log.level must be one of debug, info, warn, error")
        return level

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class RateLimiterSettings(BaseModel):
    period: str = "1m"
    limit: int = 0

    @field_validator("period")
    @classmethod
    def validate_period(cls, v: str) -> str:
        if parse_duration(v) <= 0:
            raise ValueError("ratelimiter.period must be greater than 0")
        return v.strip()

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("ratelimiter.limit must be 0 (disabled) or positive")
        return v

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    @property
    def period_seconds(self) -> int:
        return max(1, int(parse_duration(self.period)))


class Settings(BaseSettings):
    """Validated application settings; jwt.secret is the only required key."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    jwt: JWTSettings
    password: PasswordSettings = PasswordSettings()
    casbin: CasbinSettings = CasbinSettings()
    log: LogSettings = LogSettings()
    ratelimiter: RateLimiterSettings = RateLimiterSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (used by scripts and the server entry point)."""
    return Settings()
