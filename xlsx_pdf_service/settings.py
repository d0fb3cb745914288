from urllib.parse import urlsplit, urlunsplit

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore", validate_assignment=True)

    XLSX_PDF_SERVICE_VERSION: str = Field(
        "dev",
        min_length=1,
        validation_alias=AliasChoices("XLSX_PDF_SERVICE_VERSION", "XLSX_PDF_SERVICE_IMAGE_RELEASE_VERSION"),
    )
    XLSX_PDF_SERVICE_LOG_LEVEL: int = Field(20, ge=0, le=50)
    XLSX_PDF_SERVICE_DEBUG_MODE: bool = Field(False)

    XLSX_PDF_SERVICE_HOST: str = Field("0.0.0.0", min_length=1)
    XLSX_PDF_SERVICE_PORT: int = Field(3001, ge=1, le=65535)
    XLSX_PDF_SERVICE_WORKERS: int = Field(1, ge=1)

    GOTENBERG_URL: str = Field("http://localhost:3000/forms/libreoffice/convert", min_length=1)
    # seconds before the outbound render call is aborted
    GOTENBERG_TIMEOUT: float = Field(60, gt=0)
    GOTENBERG_HEALTH_TIMEOUT: float = Field(5, gt=0)

    # seconds for the whole /convert request, including queueing behind the limiter
    XLSX_PDF_SERVICE_REQUEST_TIMEOUT: float = Field(120, gt=0)

    XLSX_PDF_SERVICE_DEFAULT_FONT_SIZE: int = Field(9, ge=1)
    XLSX_PDF_SERVICE_MAX_FILE_SIZE_MB: float = Field(20, gt=0)
    XLSX_PDF_SERVICE_MAX_CONCURRENT: int = Field(5, ge=1)
    # resident memory ceiling for admitting new conversions, 0 disables the check
    XLSX_PDF_SERVICE_MEMORY_LIMIT_MB: int = Field(1024, ge=0)

    XLSX_PDF_SERVICE_RATE_LIMIT_WINDOW_SEC: int = Field(60, gt=0)
    # requests per window per client ip, 0 disables rate limiting
    XLSX_PDF_SERVICE_RATE_LIMIT_MAX: int = Field(100, ge=0)

    XLSX_PDF_SERVICE_API_KEY: str = ""
    XLSX_PDF_SERVICE_CORS_ORIGINS: str = "*"
    # comma separated peer addresses whose X-Forwarded-For header is honored
    XLSX_PDF_SERVICE_TRUSTED_PROXIES: str = ""

    @field_validator("GOTENBERG_URL")
    @classmethod
    def validate_gotenberg_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"Invalid GOTENBERG_URL: {value}")
        return value

    @field_validator("XLSX_PDF_SERVICE_API_KEY", "XLSX_PDF_SERVICE_CORS_ORIGINS", "XLSX_PDF_SERVICE_TRUSTED_PROXIES",
                     mode="before")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        return str(value).strip()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def LOG_LEVEL(self) -> int:
        # 50 - CRITICAL, 40 - ERROR, 30 - WARNING, 20 - INFO, 10 - DEBUG, 0 - NOTSET
        return self.XLSX_PDF_SERVICE_LOG_LEVEL

    @computed_field  # type: ignore[prop-decorator]
    @property
    def DEBUG_MODE(self) -> bool:
        return self.XLSX_PDF_SERVICE_DEBUG_MODE

    @computed_field  # type: ignore[prop-decorator]
    @property
    def GOTENBERG_HEALTH_URL(self) -> str:
        parts = urlsplit(self.GOTENBERG_URL)
        return urlunsplit((parts.scheme, parts.netloc, "/health", "", ""))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def MAX_FILE_SIZE(self) -> int:
        """Upload ceiling in bytes."""
        return int(self.XLSX_PDF_SERVICE_MAX_FILE_SIZE_MB * 1024 * 1024)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def CORS_ORIGINS(self) -> list[str]:
        parts = [p.strip() for p in self.XLSX_PDF_SERVICE_CORS_ORIGINS.split(",")]
        return [p for p in parts if p] or ["*"]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def API_KEY_REQUIRED(self) -> bool:
        return bool(self.XLSX_PDF_SERVICE_API_KEY)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def TRUSTED_PROXIES(self) -> list[str]:
        return [p.strip() for p in self.XLSX_PDF_SERVICE_TRUSTED_PROXIES.split(",") if p.strip()]
