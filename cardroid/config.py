"""
Application Configuration
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # MongoDB Configuration (empty URI leaves the service running degraded)
    mongodb_uri: Optional[str] = None
    database_name: str = "ofertaclientes"

    # Business calendar
    timezone: str = "America/Lima"
    currency: str = "S/"

    # WhatsApp gateway (Evolution API compatible)
    whatsapp_gateway_url: str = "http://localhost:8080"
    whatsapp_gateway_api_key: Optional[str] = None
    whatsapp_instance_name: str = "cardroid-bot"
    whatsapp_session_dir: str = ".wwebjs_auth"
    whatsapp_qr_image_path: str = "whatsapp-qr.png"

    # Broadcast throttling
    broadcast_fixed_delay_seconds: float = 120.0
    offer_campaign_window_seconds: float = 2 * 60 * 60

    # Financing defaults
    default_down_payment: float = 350.0
    default_installments: int = 2
    installment_interval_days: int = 30

    # Reminder jobs
    warranty_reminder_days: int = 7
    warranty_reminder_hour: int = 8
    warranty_reminder_minute: int = 0
    installment_reminder_hour: int = 8
    installment_reminder_minute: int = 30
    scheduler_enabled: bool = True

    # Transaction ledger
    ledger_path: str = "transactions.csv"

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_default: str = "100/minute"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_reload: bool = False

    # Logging / monitoring
    log_level: str = "INFO"
    log_format: str = "text"
    environment: str = "production"
    sentry_dsn: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
