from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from registration_desk.models import SheetSchema, StatusLabels


class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "報名取消系統"
    VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated
    STATIC_DIR: str = "public"

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    # Google Sheets
    GOOGLE_CREDENTIALS: Optional[str] = None  # inline service account JSON
    GOOGLE_CREDENTIALS_PATH: Optional[str] = None
    GOOGLE_SHEET_ID: Optional[str] = None
    SHEET_NAME: str = "registrations"

    # Sheet schema (header text of each logical column)
    COLUMN_ID_NUMBER: str = "身分證字號"
    COLUMN_NAME: str = "姓名"
    COLUMN_COURSE_NAME: str = "課程名稱"
    COLUMN_COURSE_DATE: str = "開課日期"
    COLUMN_STATUS: str = "狀態"
    COLUMN_BIRTHDAY: str = "生日"
    COLUMN_HANDLER_CONTACT: str = "承辦人LINE ID"
    REQUIRE_BIRTHDAY: bool = False

    # Values written to the status cell
    STATUS_LABEL_CONFIRMED: str = "已確認"
    STATUS_LABEL_CANCELLED: str = "已取消"

    # Show "王＊明" instead of the full name in query results
    MASK_NAMES: bool = False

    # LINE Messaging API
    LINE_CHANNEL_ACCESS_TOKEN: Optional[str] = None

    # reCAPTCHA v3
    RECAPTCHA_SECRET_KEY: Optional[str] = None
    RECAPTCHA_MIN_SCORE: float = 0.5
    RECAPTCHA_BYPASS: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def sheet_schema(self) -> SheetSchema:
        """Builds (and validates) the column mapping used by lookups and writes."""
        return SheetSchema(
            id_number=self.COLUMN_ID_NUMBER,
            name=self.COLUMN_NAME,
            course_name=self.COLUMN_COURSE_NAME,
            course_date=self.COLUMN_COURSE_DATE,
            status=self.COLUMN_STATUS,
            birthday=self.COLUMN_BIRTHDAY if self.REQUIRE_BIRTHDAY else None,
            handler_contact_id=self.COLUMN_HANDLER_CONTACT or None,
        )

    def status_labels(self) -> StatusLabels:
        return StatusLabels(
            confirmed=self.STATUS_LABEL_CONFIRMED,
            cancelled=self.STATUS_LABEL_CANCELLED,
        )


def get_settings() -> Settings:
    return Settings()
