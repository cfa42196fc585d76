import logging
from typing import Any, Optional

from src.bucketing.hasher import bucket_for, hash_value, scale_hash
from src.campaign import CompiledCampaign, VariationRange
from src.constants import MAX_TRAFFIC_PERCENT, MAX_TRAFFIC_VALUE
from src.observability.logging import get_logger


def is_valid_user_id(user_id: Any) -> bool:
    return isinstance(user_id, str) and user_id != ""


def traffic_multiplier(traffic_allocation: int, total_space: int = MAX_TRAFFIC_VALUE) -> int:
    """
    低トラフィックのキャンペーンでも Variation 全体にユーザーを散らすための倍率。
    他SDKと同じく整数除算を2回行う (total_space // allocation // 100)。
    """
    return (total_space // traffic_allocation) // 100


class Bucketer:
    def __init__(self, total_space: int = MAX_TRAFFIC_VALUE, logger: Optional[logging.Logger] = None):
        self.total_space = total_space
        self.logger = get_logger(logger)

    def is_in_campaign(self, user_id: Any, campaign: Optional[CompiledCampaign]) -> bool:
        """
        user_id のバケット値 (1..100) が campaign の traffic_allocation 以下であれば
        キャンペーン対象とする。不正な入力では例外を出さず False を返す。
        """
        if not is_valid_user_id(user_id):
            self.logger.error("Invalid userId:%r passed to is_in_campaign", user_id)
            return False

        if campaign is None:
            self.logger.error("Invalid campaign passed to is_in_campaign")
            return False

        bucket_value = bucket_for(user_id, MAX_TRAFFIC_PERCENT)
        is_part = bucket_value != 0 and bucket_value <= campaign.traffic_allocation
        self.logger.debug(
            "userId:%s got bucketValue:%s for campaign:%s (traffic:%s) part of campaign? %s",
            user_id, bucket_value, campaign.key, campaign.traffic_allocation, is_part,
        )
        return is_part

    def assign_variation(self, user_id: Any, campaign: Optional[CompiledCampaign]) -> Optional[VariationRange]:
        if not is_valid_user_id(user_id):
            self.logger.error("Invalid userId:%r passed to assign_variation", user_id)
            return None

        if campaign is None:
            self.logger.error("Invalid campaign passed to assign_variation")
            return None

        if campaign.traffic_allocation <= 0:
            self.logger.debug("campaign:%s has no traffic allocated", campaign.key)
            return None

        hash_val = hash_value(user_id)
        multiplier = traffic_multiplier(campaign.traffic_allocation, self.total_space)
        bucket_value = scale_hash(hash_val, self.total_space, multiplier)

        self.logger.debug(
            "userId:%s for campaign:%s having percent traffic:%s got hash-value:%s and bucket value:%s",
            user_id, campaign.key, campaign.traffic_allocation, hash_val, bucket_value,
        )
        return self.find_variation(campaign, bucket_value)

    def find_variation(self, campaign: CompiledCampaign, bucket_value: int) -> Optional[VariationRange]:
        # Ranges are disjoint, so the first match is the only match
        for variation in campaign.variations:
            if variation.covers(bucket_value):
                return variation
        return None
