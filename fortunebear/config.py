import os
import math
import logging
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# 로그 설정
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - [%(name)s] %(message)s"
)
logger = logging.getLogger("FortuneBearConfig")

MIN_TEMPERATURE = 0.8
MAX_TEMPERATURE = 2.0


def load_environment() -> None:
    if os.path.exists(".env.test"):
        load_dotenv(".env.test")
        logger.info("Loaded environment variables from .env.test")
    elif os.path.exists(".env"):
        load_dotenv(".env")
        logger.info("Loaded environment variables from .env")
    else:
        # 파일이 없으면 시스템 환경 변수(ECS)를 그대로 사용
        logger.info("Using system environment variables (ECS/Production)")


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _in_range(name, value, default, minimum, maximum):
    if (minimum is not None and value < minimum) or (
        maximum is not None and value > maximum
    ):
        logger.warning(
            f"{name} 값 {value}이(가) 허용 범위({minimum}~{maximum})를 벗어났습니다. 기본값 {default} 사용"
        )
        return default
    return value


def _env_float(
    name: str,
    default: float,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
) -> float:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name} 값이 숫자가 아닙니다({raw!r}). 기본값 {default} 사용")
        return default
    if not math.isfinite(value):
        logger.warning(f"{name} 값이 유한한 숫자가 아닙니다({raw!r}). 기본값 {default} 사용")
        return default
    return _in_range(name, value, default, minimum, maximum)


def _env_int(
    name: str,
    default: int,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"{name} 값이 정수가 아닙니다({raw!r}). 기본값 {default} 사용")
        return default
    return _in_range(name, value, default, minimum, maximum)


class Settings(BaseModel):
    """프로세스 시작 시 한 번 만들어지는 읽기 전용 설정"""

    # LLM 제공자
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1-mini"
    openai_timeout: float = Field(15.0, gt=0)
    # 낮은 온도는 허용하지 않는다
    temperature: float = Field(0.9, ge=MIN_TEMPERATURE, le=MAX_TEMPERATURE)
    max_tokens: int = Field(400, gt=0)
    title_max_length: int = Field(8, gt=0)
    prompts_file: Optional[str] = None

    # 리뷰 저장소 (Supabase REST)
    store_url: Optional[str] = None
    store_key: Optional[str] = None
    reviews_table: str = "reviews"
    store_timeout: float = Field(5.0, gt=0)

    # 서버
    port: int = Field(3000, ge=1, le=65535)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])


def load_settings() -> Settings:
    load_environment()
    origins = _env_str("CORS_ORIGINS")
    return Settings(
        openai_api_key=_env_str("OPENAI_API_KEY"),
        openai_model=_env_str("OPENAI_MODEL") or "gpt-4.1-mini",
        openai_timeout=_env_float("OPENAI_TIMEOUT", 15.0, minimum=0.1),
        temperature=_env_float(
            "GENERATION_TEMPERATURE", 0.9, minimum=MIN_TEMPERATURE, maximum=MAX_TEMPERATURE
        ),
        max_tokens=_env_int("GENERATION_MAX_TOKENS", 400, minimum=1),
        prompts_file=_env_str("PROMPTS_FILE"),
        store_url=_env_str("SUPABASE_URL"),
        store_key=_env_str("SUPABASE_KEY"),
        reviews_table=_env_str("REVIEWS_TABLE") or "reviews",
        store_timeout=_env_float("STORE_TIMEOUT", 5.0, minimum=0.1),
        port=_env_int("PORT", 3000, minimum=1, maximum=65535),
        cors_origins=(
            [o.strip() for o in origins.split(",") if o.strip()] if origins else ["*"]
        ),
    )
