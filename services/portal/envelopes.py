"""
응답 봉투(envelope) 검증
- 모든 응답은 {status: "success" | "error", data, message?}
- status 를 판별자로 하는 discriminated union 으로 경계에서 검증
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class SuccessEnvelope(BaseModel):
    status: Literal["success"]
    data: Any = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ErrorEnvelope(BaseModel):
    status: Literal["error"]
    message: str = "Request failed"
    data: Any = None

    model_config = ConfigDict(extra="ignore")


Envelope = Annotated[Union[SuccessEnvelope, ErrorEnvelope], Field(discriminator="status")]

envelope_adapter = TypeAdapter(Envelope)
