from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False

    # payments platform
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""
    PAYMENT_MIN_CENTS: int = 50

    # transactional email
    RESEND_API_KEY: str = ""
    RESEND_BASE_URL: str = "https://api.resend.com"
    CONTACT_TO_EMAIL: str = "orders@example.com"
    CONTACT_FROM_EMAIL: str = "Storefront <no-reply@example.com>"

    # shipping quotes
    SHIPPO_API_KEY: str = ""
    SHIPPO_UPS_ACCOUNT_ID: Optional[str] = None
    SHIPPO_BASE_URL: str = "https://api.goshippo.com"
    SHIPPING_CARRIER: str = "UPS"
    SHIPPING_SERVICE_TOKEN: str = "ups_ground"
    HTTP_TIMEOUT_SECONDS: float = 15.0

    SHIP_FROM_NAME: str = "Alliger House of Wings"
    SHIP_FROM_STREET: str = ""
    SHIP_FROM_CITY: str = ""
    SHIP_FROM_STATE: str = ""
    SHIP_FROM_ZIP: str = ""
    SHIP_FROM_PHONE: Optional[str] = None
    SHIP_FROM_EMAIL: Optional[str] = None

    # order math
    TAX_RATE: float = 0.0
    TAX_SHIPPING: bool = False
    TAX_ORIGIN_STATE: Optional[str] = None
    FREE_SHIPPING_THRESHOLD_CENTS: int = 7500
    FLAT_SHIPPING_CENTS: int = 599
    CART_MAX_LINE_QTY: int = 99

    SITE_URL: str = "http://localhost:3000"

    # housekeeping
    PENDING_ORDER_TTL_SECONDS: int = 60 * 60 * 24
    STORAGE_TTL_SECONDS: int = 60 * 60 * 24 * 30
    HOUSEKEEPING_INTERVAL_SECONDS: int = 60


settings = Settings()
