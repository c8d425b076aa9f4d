# config.py

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple
from dotenv import load_dotenv

# 載入環境變數
load_dotenv()

logger = logging.getLogger(__name__)

LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float, problems: List[str]) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    try:
        return float(value)
    except ValueError:
        problem = f"⚠️  {name}={value!r} is not a number, using {default:g}"
        logger.warning(problem)
        problems.append(problem)
        return default


def _env_log_level(problems: List[str]) -> str:
    value = os.getenv('LOG_LEVEL', 'INFO').strip().upper()
    if value in LOG_LEVELS:
        return value
    problem = f"⚠️  LOG_LEVEL={value!r} is not one of {', '.join(LOG_LEVELS)}, using INFO"
    logger.warning(problem)
    problems.append(problem)
    return 'INFO'


@dataclass(frozen=True)
class Settings:
    """Service configuration, read once from the environment"""

    # ===== OpenAI / Azure OpenAI =====
    openai_api_key: Optional[str] = None
    openai_model: str = 'gpt-4-0613'
    azure_openai_endpoint: Optional[str] = None
    azure_openai_key: Optional[str] = None
    azure_openai_api_version: str = '2024-12-01-preview'
    azure_openai_deployment: Optional[str] = None
    openai_timeout_seconds: float = 60.0

    # ===== 請求 =====
    request_deadline_seconds: float = 120.0
    cors_origins: Tuple[str, ...] = ('*',)
    log_level: str = 'INFO'

    # ===== Google API Gateway =====
    gateway_wait_for_operations: bool = False
    gateway_operation_timeout_seconds: float = 300.0
    gateway_poll_interval_seconds: float = 5.0
    gateway_rollback_on_failure: bool = False

    # 無法解析、已改用預設值的環境變數
    env_problems: Tuple[str, ...] = ()

    @property
    def use_azure(self) -> bool:
        return bool(self.azure_openai_endpoint)

    @property
    def model_name(self) -> Optional[str]:
        """Model name sent with each completion (deployment name on Azure)"""
        if self.use_azure:
            return self.azure_openai_deployment
        return self.openai_model

    @classmethod
    def from_env(cls) -> 'Settings':
        problems: List[str] = []
        origins = os.getenv('CORS_ORIGINS', '*')
        return cls(
            openai_api_key=os.getenv('OPENAI_API_KEY'),
            openai_model=os.getenv('OPENAI_MODEL', 'gpt-4-0613'),
            azure_openai_endpoint=os.getenv('AZURE_OPENAI_ENDPOINT'),
            azure_openai_key=os.getenv('AZURE_OPENAI_KEY'),
            azure_openai_api_version=os.getenv('AZURE_OPENAI_API_VERSION', '2024-12-01-preview'),
            azure_openai_deployment=os.getenv('AZURE_OPENAI_DEPLOYMENT'),
            openai_timeout_seconds=_env_float('OPENAI_TIMEOUT_SECONDS', 60.0, problems),
            request_deadline_seconds=_env_float('REQUEST_DEADLINE_SECONDS', 120.0, problems),
            cors_origins=tuple(o.strip() for o in origins.split(',') if o.strip()) or ('*',),
            log_level=_env_log_level(problems),
            gateway_wait_for_operations=_env_bool('GATEWAY_WAIT_FOR_OPERATIONS'),
            gateway_operation_timeout_seconds=_env_float('GATEWAY_OPERATION_TIMEOUT_SECONDS', 300.0, problems),
            gateway_poll_interval_seconds=_env_float('GATEWAY_POLL_INTERVAL_SECONDS', 5.0, problems),
            gateway_rollback_on_failure=_env_bool('GATEWAY_ROLLBACK_ON_FAILURE'),
            env_problems=tuple(problems),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    建立並緩存設定
    使用 lru_cache 確保整個應用只讀取一次環境變數
    """
    return Settings.from_env()
