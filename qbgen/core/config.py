from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

Target = Literal["ts", "mts", "cjs", "esm", "deno"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="QBGEN_", env_file=".env", extra="ignore")

    app_name: str = "qbgen"

    database_url: str | None = None
    concurrency: int = 5
    wait_until_available: float = 30.0

    output_dir: str = "dbschema/edgeql-js"
    target: Target = "ts"

    runtime_package: str = "edgedb"
    runtime_version: str = "0.22.0"

    log_level: str = "INFO"

settings = Settings()
