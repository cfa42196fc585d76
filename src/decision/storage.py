import json
import threading
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.errors import InvalidArgument, StoreUnavailable

UserRecord = Dict[str, Any]


@runtime_checkable
class UserStorage(Protocol):
    """
    Sticky assignment store.

    lookup(user_id) は {"user_id": ..., "campaign_bucket_map": {campaign_key: {"variation_name": ...}}}
    もしくは None を返す。どちらのメソッドも失敗時に例外を送出してよい
    (DecisionEngine 側で「見つからない」として扱う)。
    """
    def lookup(self, user_id: str) -> Optional[UserRecord]:
        ...

    def save(self, user_id: str, record: UserRecord) -> None:
        ...


def ensure_user_storage(storage: Any) -> Optional[UserStorage]:
    """Reject a store that does not implement lookup/save, at composition time."""
    if storage is None:
        return None
    if not isinstance(storage, UserStorage):
        raise InvalidArgument(
            f"user storage {type(storage).__name__} must implement lookup(user_id) and save(user_id, record)"
        )
    return storage


def stored_variation_name(record: Any, campaign_key: str) -> Optional[str]:
    """Variation name stored for campaign_key, or None for missing/malformed records."""
    if not isinstance(record, dict):
        return None
    bucket_map = record.get("campaign_bucket_map")
    if not isinstance(bucket_map, dict):
        return None
    entry = bucket_map.get(campaign_key)
    if not isinstance(entry, dict):
        return None
    name = entry.get("variation_name")
    return name if isinstance(name, str) else None


def merge_record(user_id: str, record: Any, campaign_key: str, variation_name: str) -> UserRecord:
    # 他キャンペーンの割り当ては残したまま追記する
    bucket_map: Dict[str, Any] = {}
    if isinstance(record, dict) and isinstance(record.get("campaign_bucket_map"), dict):
        bucket_map = dict(record["campaign_bucket_map"])
    bucket_map[campaign_key] = {"variation_name": variation_name}
    return {"user_id": user_id, "campaign_bucket_map": bucket_map}


class InMemoryUserStorage:
    def __init__(self):
        self._records: Dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def lookup(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            record = self._records.get(user_id)
            return json.loads(json.dumps(record)) if record is not None else None

    def save(self, user_id: str, record: UserRecord) -> None:
        with self._lock:
            # last-write-wins
            self._records[user_id] = json.loads(json.dumps(record))


class DynamoUserStorage:
    """
    DynamoDB テーブルに割り当てを保存するストア。
    パーティションキーは user_id、campaign_bucket_map は JSON 文字列として保持する。
    """
    def __init__(self, table_name: str, client: Any = None):
        self.table_name = table_name
        self._client = client if client is not None else boto3.client('dynamodb')

    def lookup(self, user_id: str) -> Optional[UserRecord]:
        try:
            response = self._client.get_item(
                TableName=self.table_name,
                Key={'user_id': {'S': user_id}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"lookup failed for user {user_id}: {e}") from e

        item = response.get('Item')
        if not item:
            return None

        raw_map = item.get('campaign_bucket_map', {}).get('S', '{}')
        return {"user_id": user_id, "campaign_bucket_map": json.loads(raw_map)}

    def save(self, user_id: str, record: UserRecord) -> None:
        try:
            self._client.put_item(
                TableName=self.table_name,
                Item={
                    'user_id': {'S': user_id},
                    'campaign_bucket_map': {'S': json.dumps(record.get("campaign_bucket_map", {}))},
                },
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"save failed for user {user_id}: {e}") from e
