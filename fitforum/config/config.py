from functools import lru_cache

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 예제 코드나 문서에 흔히 등장하는 값은 서명 키로 허용하지 않습니다.
_PLACEHOLDER_SECRETS = {"your-secret-key", "secret", "changeme"}


class MySQLConfig(BaseModel):
    host: str
    user: str
    passwd: str
    port: int = 3306
    db: str
    pool_size: int = 10
    pool_timeout: int = 30
    echo: bool = False


class JwtConfig(BaseModel):
    secret_key: str
    algorithm: str = "HS256"
    expire_minutes: int = 60 * 24

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        if not value.strip() or value in _PLACEHOLDER_SECRETS:
            raise ValueError("JWT__SECRET_KEY must be set to a non-placeholder value")
        return value


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000


class Settings(BaseSettings):
    """
    기본 Configuration

    DB 접속 정보와 JWT 서명 키는 기본값이 없으므로 환경변수나 .env 파일로 반드시 지정해야 합니다.
    (예: MYSQL__HOST, MYSQL__USER, MYSQL__PASSWD, MYSQL__DB, JWT__SECRET_KEY)
    """

    mysql: MySQLConfig
    jwt: JwtConfig
    server: ServerConfig = ServerConfig()

    model_config = SettingsConfigDict(
        env_file="fitforum/config/.env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )


@lru_cache
def get_settings():
    return Settings()


settings: Settings = get_settings()
