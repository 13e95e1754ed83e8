"""
config.py — Konfiguracja aplikacji przez zmienne środowiskowe.
Wszystkie zmienne mają prefiks CALC_BOT_.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Telegram
    bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    telegram_timeout_ms: int = 10_000
    poll_timeout_s: int = 30

    # Webhook (puste webhook_url = long polling)
    webhook_url: str = ""
    webhook_path: str = "/telegram"
    webhook_secret: str = ""

    # Właściciel bota (0 = komendy admina wyłączone)
    owner_id: int = 0

    # Postgres (puste = katalog w pamięci, tylko dev)
    db_url: str = ""

    # Logging
    log_level: str = "INFO"

    # Serwer HTTP
    host: str = "0.0.0.0"
    port: int = 8080

    # Bot
    bot_title: str = "BIKA Calculator"
    admin_group_list_limit: int = 30

    # App
    app_title: str = "CalcBot"
    app_version: str = "0.1.0"

    model_config = SettingsConfigDict(env_prefix="CALC_BOT_", env_file=".env", extra="ignore")
