from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc_datetime(value: Any) -> Any:
    """datetime 값을 UTC 기준으로 정규화한다.

    pymongo 는 기본 설정에서 tz 정보가 없는 datetime 을 돌려주므로 UTC 로 간주한다.
    """

    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_object_id(value: Any) -> ObjectId:
    """str/ObjectId 를 MongoDB ObjectId 로 변환한다. 형식이 틀리면 bson 예외가 난다."""

    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise TypeError("ObjectId cannot be None")
    return ObjectId(str(value))


def from_object_id(value: Optional[ObjectId]) -> Optional[str]:
    if value is None:
        return None
    return str(value)


PyObjectId = Annotated[ObjectId, BeforeValidator(to_object_id)]
MongoDateTime = Annotated[datetime, BeforeValidator(ensure_utc_datetime)]


class BaseDocument(BaseModel):
    """MongoDB 도큐먼트 공통 베이스 모델 (_id, created_at, updated_at)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: MongoDateTime
    updated_at: MongoDateTime

    def to_mongo_record(self) -> dict[str, Any]:
        """insert 용 dict. _id=None 은 제외해 Mongo 가 ObjectId 를 생성하도록 한다."""

        return self.model_dump(by_alias=True, exclude_none=True)
