import logging
from dataclasses import dataclass
from typing import Optional

from services.portal.errors import PortalError, SessionExpired
from services.portal.http_client import PortalClient

logger = logging.getLogger(__name__)

DECISIONS = ("APPROVED", "REJECTED")


@dataclass
class LeaveDecision:
    ok: bool
    message: str
    leave: Optional[dict] = None


def is_actionable(leave: dict) -> bool:
    """승인/반려 버튼은 PENDING 상태에서만 노출"""
    return leave.get("status") == "PENDING"


async def list_pending(client: PortalClient, **filters) -> list[dict]:
    return await client.get("/leaves", status="PENDING", **filters)


async def update_status(client: PortalClient, leave_id: int, status: str,
                        remarks: Optional[str] = None) -> LeaveDecision:
    """
    휴가 신청 승인/반려
    - 현재 상태 검사는 서버가 담당 (PENDING 이 아니면 400)
    - 실패는 로그 + 메시지로 돌려주고 화면 상태는 그대로 둔다
    """
    status = status.upper()
    if status not in DECISIONS:
        raise ValueError(f"status must be one of {', '.join(DECISIONS)}")

    try:
        leave = await client.patch(f"/leaves/{leave_id}/status", {"status": status, "remarks": remarks})
    except SessionExpired:
        raise
    except PortalError as exc:
        logger.error("Leave %s -> %s failed: %s", leave_id, status, exc.message)
        return LeaveDecision(ok=False, message=exc.message)

    logger.info("Leave %s -> %s", leave_id, status)
    return LeaveDecision(ok=True, message=f"Leave application {status.lower()}", leave=leave)
