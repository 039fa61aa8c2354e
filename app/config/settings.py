from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for maintenance jobs and admin auth calls

    # Room file storage
    storage_backend: str = "supabase"  # supabase | s3
    room_files_bucket: str = "room-files"
    max_file_size_bytes: int = 50 * 1024 * 1024

    # AWS S3 (only read when storage_backend == "s3")
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Rooms
    max_message_length: int = 2000
    message_retention_days: int = 30
    guest_avatar_base_url: str = "https://ui-avatars.com/api/"
    realtime_queue_size: int = 100

    # Maintenance
    maintenance_enabled: bool = False
    maintenance_interval_seconds: int = 300
    empty_room_grace_days: int = 0

    # App
    app_name: str = "audio-rooms-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",
        extra="ignore"
    )


settings = Settings()
