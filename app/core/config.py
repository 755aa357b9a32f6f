from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Storefront Catalog"

    # Local record backend
    DATABASE_URL: str = "sqlite+aiosqlite:///./catalog.db"

    # Remote project (auth, records, storage)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""
    PRODUCT_TABLE: str = "loja_produto"
    ASSET_BUCKET: str = "box"
    ASSET_PATH_PREFIX: str = "produtos"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Backend selection: "rest" talks to the remote project,
    # "sql" / "local" keep records and images on this host
    RECORD_BACKEND: str = "rest"
    ASSET_BACKEND: str = "rest"

    # Session
    SESSION_SECRET_KEY: str = "change-me"

    # File uploads
    MAX_IMAGE_SIZE_MB: int = 5
    ALLOWED_IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp", ".gif"]
    UPLOAD_DIR: str = "static/uploads"
    PUBLIC_UPLOAD_URL: str = "/static/uploads"

    # Display and sharing
    CURRENCY_SYMBOL: str = "R$"
    PRODUCT_LINK_BASE: str = "http://localhost:3000/dashboard/produto"
    SHARE_BASE_URL: str = "https://wa.me/"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
