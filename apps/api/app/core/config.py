from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    postgres_url: str = "postgresql+psycopg://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"

    jwt_secret: str = "change-me"
    church_name: str = "Church Registry"

    # Import pipeline
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    max_import_rows: int = 5000
    import_progress_flush_interval: int = 10  # Rows between progress flushes
    import_report_incomplete_rows: bool = False  # Keep rows missing required fields
    import_job_timeout: int = 3600  # Seconds before RQ kills a run

    # Middleware configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    log_format: str = "json"  # json or text
    enable_request_logging: bool = True
    cors_origins: str = ""  # Comma-separated list of allowed origins
    enable_gzip: bool = True

    # Metrics configuration (CloudWatch EMF)
    enable_metrics: bool = True
    metrics_namespace: str = ""  # Defaults to church_name

    model_config = {
        "env_file": "../.env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
