import json
import logging
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from src.bucketing.allocator import compile_campaign
from src.campaign import Campaign, Goal, SettingsDocument, Variation
from src.constants import MAX_TRAFFIC_VALUE
from src.errors import InvalidArgument
from src.observability.logging import get_logger
from src.settings.schema import CampaignSchema, SettingsSchema

EMPTY_SETTINGS = SettingsDocument(account_id=None, version=None, campaigns=())


def to_campaign(schema: CampaignSchema) -> Campaign:
    return Campaign(
        id=schema.id,
        key=schema.key,
        status=schema.status,
        traffic_allocation=schema.traffic_allocation,
        variations=tuple(Variation(id=v.id, name=v.name, weight=v.weight) for v in schema.variations),
        goals=tuple(Goal(id=g.id, identifier=g.identifier, type=g.type) for g in schema.goals),
    )


def load(document: Union[str, bytes, Mapping[str, Any]], total_space: int = MAX_TRAFFIC_VALUE,
         logger: Optional[logging.Logger] = None) -> SettingsDocument:
    """
    設定ドキュメント (JSON文字列 or dict) を検証し、各キャンペーンの
    バケット範囲を一度だけ計算した SettingsDocument を返す。

    Raises:
        InvalidArgument: JSONとして読めない、またはスキーマに合わない場合
    """
    log = get_logger(logger)

    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as e:
            raise InvalidArgument(f"settings document is not valid JSON: {e}") from e

    try:
        schema = SettingsSchema.model_validate(document)
    except ValidationError as e:
        raise InvalidArgument(f"settings document is corrupted: {e}") from e

    campaigns = tuple(
        compile_campaign(to_campaign(c), total_space=total_space, logger=log)
        for c in schema.campaigns
    )
    log.debug("Settings file processed: account %s, %d campaigns", schema.account_id, len(campaigns))

    return SettingsDocument(account_id=schema.account_id, version=schema.version, campaigns=campaigns)
