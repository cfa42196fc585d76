import logging
import math
from typing import Iterable, List, Optional

from src.campaign import Campaign, CompiledCampaign, Variation, VariationRange
from src.constants import MAX_TRAFFIC_VALUE
from src.observability.logging import get_logger

# 重みが 0 / 未指定の Variation に割り当てる到達不能な範囲
EMPTY_RANGE_BOUND = -1


def variation_step(weight: Optional[float], total_space: int = MAX_TRAFFIC_VALUE) -> int:
    """Bucket count owned by a variation of the given weight (0 when unweighted)."""
    if weight is None or weight == 0:
        return 0
    step = math.ceil(weight * (total_space / 100))
    return min(step, total_space)


def allocate(variations: Iterable[Variation], total_space: int = MAX_TRAFFIC_VALUE) -> List[VariationRange]:
    """
    宣言順に Variation へ連続したバケット範囲を割り当てる。

    重みの合計が 100 を超えても失敗させない。後続の Variation は
    total_space を超えた (到達不能な) 範囲を受け取るが、既に稼働中の
    実験との互換性のためこの挙動は維持する。
    """
    ranges: List[VariationRange] = []
    current_allocation = 0

    for variation in variations:
        step = variation_step(variation.weight, total_space)
        if step:
            start = current_allocation + 1
            end = current_allocation + step
            current_allocation += step
        else:
            start = end = EMPTY_RANGE_BOUND
        ranges.append(VariationRange(variation=variation, start=start, end=end))

    return ranges


def compile_campaign(campaign: Campaign, total_space: int = MAX_TRAFFIC_VALUE,
                     logger: Optional[logging.Logger] = None) -> CompiledCampaign:
    log = get_logger(logger)
    ranges = allocate(campaign.variations, total_space)

    for variation_range in ranges:
        log.info(
            "Campaign:%s having variation:%s with weight:%s got range as: (%s - %s)",
            campaign.key, variation_range.name, variation_range.weight,
            variation_range.start, variation_range.end,
        )

    return CompiledCampaign(campaign=campaign, variations=tuple(ranges))
