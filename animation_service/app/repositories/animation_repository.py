from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_id

from .documents.animation_document import AnimationDocument, AnimationMessageDocument
from .interfaces import AnimationRepositoryInterface
from ..models.animation import Animation, AnimationMessage, AnimationSummary


_SUMMARY_PROJECTION = {
    "title": 1,
    "initial_prompt": 1,
    "thumbnail": 1,
    "updated_at": 1,
}


class AnimationRepository(AnimationRepositoryInterface):
    """animations 컬렉션 접근 레이어.

    형식이 잘못된 id 는 존재하지 않는 레코드와 동일하게 취급한다.
    """

    def __init__(self, database: Database) -> None:
        self._col = database["animations"]

    def _owner_filter(self, animation_id: str, identity: str) -> Optional[dict]:
        oid = parse_object_id(animation_id)
        if oid is None:
            return None
        return {"_id": oid, "identity": identity}

    def insert(self, animation: Animation) -> Animation:
        doc = AnimationDocument.from_domain(animation)
        result = self._col.insert_one(doc.to_mongo_record())
        doc.id = result.inserted_id
        return doc.to_domain()

    def find_for_owner(self, animation_id: str, identity: str) -> Optional[Animation]:
        query = self._owner_filter(animation_id, identity)
        if query is None:
            return None
        raw = self._col.find_one(query)
        if raw is None:
            return None
        return AnimationDocument.model_validate(raw).to_domain()

    def list_summaries(self, identity: str) -> List[AnimationSummary]:
        """히스토리 목록. 코드와 메시지는 제외하고 최근 수정 순으로 반환."""
        cursor = self._col.find({"identity": identity}, _SUMMARY_PROJECTION).sort(
            "updated_at", -1
        )
        items = []
        for raw in cursor:
            items.append(
                AnimationSummary(
                    id=str(raw["_id"]),
                    title=raw["title"],
                    initial_prompt=raw["initial_prompt"],
                    thumbnail=raw.get("thumbnail"),
                    updated_at=raw["updated_at"],
                )
            )
        return items

    def apply_modification(
        self,
        animation_id: str,
        identity: str,
        code: str,
        messages: list[AnimationMessage],
    ) -> Optional[Animation]:
        query = self._owner_filter(animation_id, identity)
        if query is None:
            return None

        updated = self._col.find_one_and_update(
            query,
            {
                "$set": {
                    "current_code": code,
                    "updated_at": datetime.now(timezone.utc),
                },
                "$push": {
                    "messages": {
                        "$each": [
                            AnimationMessageDocument.from_domain(msg).model_dump()
                            for msg in messages
                        ]
                    }
                },
            },
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            return None
        return AnimationDocument.model_validate(updated).to_domain()

    def save_video(
        self,
        animation_id: str,
        identity: str,
        video_url: str,
        thumbnail: Optional[str],
    ) -> bool:
        query = self._owner_filter(animation_id, identity)
        if query is None:
            return False

        fields = {"video_url": video_url, "updated_at": datetime.now(timezone.utc)}
        if thumbnail:
            fields["thumbnail"] = thumbnail
        result = self._col.update_one(query, {"$set": fields})
        return result.matched_count > 0

    def delete(self, animation_id: str, identity: str) -> bool:
        query = self._owner_filter(animation_id, identity)
        if query is None:
            return False
        result = self._col.delete_one(query)
        return result.deleted_count > 0
