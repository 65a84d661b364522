# backend/teamboard/utils.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any


def to_date_obj(v: Any) -> date | None:
    """
    Accepts:
      - None
      - datetime/date
      - 'YYYY-MM-DD' string (ISO datetime strings are cut to the date part)
    Returns:
      - date or None
    """
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    if isinstance(v, str):
        return date.fromisoformat(v[:10])
    return None


def to_datetime_obj(v: Any) -> datetime | None:
    """
    'createdAt' 값 정규화
      - None/'' => None
      - datetime => 그대로
      - date => 자정 datetime
      - ISO 문자열 ('Z' 접미사 허용) => datetime
    timezone이 있으면 로컬 시각(naive)으로 변환
    """
    if v is None or v == "":
        return None
    if isinstance(v, str):
        s = v.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        v = datetime.fromisoformat(s)
    if isinstance(v, datetime):
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day)
    return None


def sanitize_for_json(obj: Any) -> Any:
    """
    JSON 직렬화 가능하게 변환:
      - datetime/date => isoformat 문자열
      - dict/list => 재귀 변환
      - 그 외 => 그대로
    """
    if obj is None:
        return None
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(x) for x in obj]
    return obj


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    사사오입 반올림 (33.5 -> 34, 0.25 -> 0.3)

    내장 round()는 banker's rounding이라 대시보드 숫자와 맞지 않는다.
    """
    quant = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP))


def round_int(value: float) -> int:
    return int(round_half_up(value, 0))
