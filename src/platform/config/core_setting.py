from pathlib import Path
from typing import Annotated, List, Literal, Optional

import orjson
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Live Ticketing Service'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Security
    SECRET_KEY: SecretStr = SecretStr('test_secret_key_change_in_production')
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ALGORITHM: str = 'HS256'

    # CORS
    # Comma separated or a JSON list; NoDecode keeps the raw string for the validator
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and v.strip().startswith('['):
            return [str(origin) for origin in orjson.loads(v)]
        if isinstance(v, str):
            return [i.strip() for i in v.split(',') if i.strip()]
        if isinstance(v, list):
            return v
        return []

    # Document store backend
    STORE_BACKEND: Literal['memory', 'kvrocks'] = 'memory'
    LIVE_QUERY_BUFFER_SIZE: int = 100  # Snapshots buffered per listener before it is dropped

    # Kvrocks Configuration (Redis protocol + Kvrocks storage)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    KVROCKS_KEY_PREFIX: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    # Kvrocks Connection Pool Configuration
    KVROCKS_POOL_MAX_CONNECTIONS: int = 100
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # seconds

    # Ticketing business rules
    TICKET_PRICE: int = 499  # Single price for every ticket
    RECENT_TICKETS_LIMIT: int = 10

    # Verification token
    TOKEN_WINDOW_SECONDS: int = 60
    TOKEN_ROTATION_SECONDS: float = 10.0
    TOKEN_MAX_AGE_WINDOWS: Optional[int] = None  # None = window is not checked on verify
    VERIFY_TIMEOUT_SECONDS: float = 5.0

    # Broadcast notices
    NOTICE_MAX_LENGTH: int = 280
    NOTICE_FEED_LIMIT: int = 3
    NOTICE_PULSE_SECONDS: float = 3.0


settings = Settings()  # type: ignore
