"""
Configuration Settings for TripSettle

Centralized configuration read from environment variables with defaults, so
the same build runs locally, in tests and in deployment.

Key configuration areas:
    - Application environment and log level
    - Default trip currency
    - Firebase service account (inline JSON or file path)
    - OpenAI model used for advisory settlement suggestions
"""

import os


class Settings:
    # App
    app_env: str = os.getenv("APP_ENV", "dev")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Trips
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "INR")

    # Firebase: inline service-account JSON wins over a credentials file
    firebase_service_account: str = os.getenv("FIREBASE_SERVICE_ACCOUNT", "")
    firebase_credentials_path: str = os.getenv("FIREBASE_CREDENTIALS_PATH", "serviceAccountKey.json")

    # AI suggestion
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")


settings = Settings()
