import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from .errors import UpstreamError, ValidationError, ValidationReason

logger = logging.getLogger("ReviewStore")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 5
MAX_LIMIT = 50


@dataclass(frozen=True)
class ReviewEntry:
    id: int
    nickname: str
    content: str
    created_at: Optional[str]


@dataclass(frozen=True)
class ReviewPage:
    reviews: List[ReviewEntry]
    page: int
    limit: int
    total: int
    has_more: bool


def normalize_paging(page: Any, limit: Any) -> Tuple[int, int]:
    """숫자가 아니거나 1 미만이면 기본값으로, limit은 MAX_LIMIT까지만 허용"""

    def _positive_int(value: Any, default: int) -> int:
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return default
        return parsed if parsed >= 1 else default

    return _positive_int(page, DEFAULT_PAGE), min(
        _positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT
    )


def _parse_total(content_range: Optional[str], fallback: int) -> int:
    # PostgREST: "0-4/23", 결과가 없으면 "*/0"
    if not content_range or "/" not in content_range:
        return fallback
    total = content_range.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else fallback


class ReviewStore:
    """Supabase(PostgREST) 리뷰 테이블 통신 전담"""

    def __init__(
        self,
        url: Optional[str],
        key: Optional[str],
        table: str = "reviews",
        timeout: float = 5.0,
    ):
        self.base_url = url.rstrip("/") if url else None
        self.key = key
        self.table = table
        self.timeout = timeout
        if not (self.base_url and self.key):
            logger.error("!!! SUPABASE_URL / SUPABASE_KEY를 찾을 수 없습니다 !!!")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _headers(self, prefer: str) -> Dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": prefer,
        }

    def _ensure_configured(self) -> None:
        if not (self.base_url and self.key):
            raise UpstreamError("review store is not configured")

    def insert(self, nickname: str, content: str) -> None:
        nickname = (nickname or "").strip()
        content = (content or "").strip()
        if not nickname or not content:
            raise ValidationError(
                ValidationReason.MISSING_FIELD, "닉네임과 내용을 모두 입력해 주세요."
            )

        self._ensure_configured()
        logger.info(f"리뷰 저장 시작: {nickname}")
        try:
            resp = requests.post(
                self.endpoint,
                headers=self._headers("return=minimal"),
                json={"nickname": nickname, "content": content},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"리뷰 저장 에러: {e}")
            raise UpstreamError(str(e)) from e

    def list_page(self, page: Any = DEFAULT_PAGE, limit: Any = DEFAULT_LIMIT) -> ReviewPage:
        page, limit = normalize_paging(page, limit)
        offset = (page - 1) * limit

        self._ensure_configured()
        params = {
            "select": "id,nickname,content,created_at",
            "order": "id.desc",
            "offset": offset,
            "limit": limit,
        }
        try:
            resp = requests.get(
                self.endpoint,
                headers=self._headers("count=exact"),
                params=params,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            rows = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"리뷰 조회 에러: {e}")
            raise UpstreamError(str(e)) from e

        if not isinstance(rows, list):
            logger.error(f"리뷰 조회 응답 형식 오류: {type(rows).__name__}")
            raise UpstreamError("unexpected review list payload")

        reviews = [
            ReviewEntry(
                id=row.get("id"),
                # NULL 컬럼은 빈 문자열로
                nickname=row.get("nickname") or "",
                content=row.get("content") or "",
                created_at=row.get("created_at"),
            )
            for row in rows
        ]
        total = _parse_total(resp.headers.get("Content-Range"), offset + len(reviews))
        logger.info(f"리뷰 조회 완료: page={page}, {len(reviews)}건 / 총 {total}건")
        return ReviewPage(
            reviews=reviews,
            page=page,
            limit=limit,
            total=total,
            has_more=offset + len(reviews) < total,
        )
