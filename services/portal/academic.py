"""
여러 학급/배정에 대한 동시 조회
- 요청을 한꺼번에 보내고 모두 끝날 때까지 기다린다 (순서 보장 없음)
- 일부 실패는 항목별로 모으고, 하나라도 실패하면 "일부 실패" 메시지
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from services.portal.errors import PortalError, SessionExpired
from services.portal.http_client import PortalClient

logger = logging.getLogger(__name__)


@dataclass
class FanOutResult:
    items: dict[Any, list] = field(default_factory=dict)
    failed: dict[Any, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def message(self) -> str:
        if self.failed:
            return f"Some requests failed ({len(self.failed)} of {len(self.items) + len(self.failed)})"
        return "All data loaded"


async def _fan_out(keys: list, calls: list) -> FanOutResult:
    responses = await asyncio.gather(*calls, return_exceptions=True)
    result = FanOutResult()
    for key, res in zip(keys, responses):
        if isinstance(res, SessionExpired):
            raise res
        if isinstance(res, PortalError):
            logger.error("Fan-out request for %s failed: %s", key, res.message)
            result.failed[key] = res.message
        elif isinstance(res, BaseException):
            raise res
        else:
            result.items[key] = res or []
    return result


async def fetch_classes(client: PortalClient) -> list[dict]:
    return await client.get("/academic/classes")


async def fetch_sections_for_classes(client: PortalClient, class_ids: Iterable[int]) -> FanOutResult:
    """classId → 섹션 목록"""
    keys = list(dict.fromkeys(class_ids))
    return await _fan_out(keys, [client.get("/academic/sections", classId=cid) for cid in keys])


async def fetch_students_for_assignments(client: PortalClient, assignments: Iterable[dict]) -> FanOutResult:
    """(classId, sectionId) → 학생 목록 (같은 섹션은 한 번만 조회)"""
    keys = list(dict.fromkeys((a["classId"], a["sectionId"]) for a in assignments))
    return await _fan_out(
        keys,
        [client.get("/users/students", classId=cid, sectionId=sid) for cid, sid in keys],
    )
