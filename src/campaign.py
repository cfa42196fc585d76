from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple, Union

from src.constants import STATUS_RUNNING

Identifier = Union[int, str]


@dataclass(frozen=True)
class Goal:
    id: Identifier
    identifier: str
    type: str


@dataclass(frozen=True)
class Variation:
    id: Identifier
    name: str
    weight: Optional[float] = None


@dataclass(frozen=True)
class Campaign:
    """
    設定ドキュメントから読み込んだままのキャンペーン定義。
    バケット範囲は持たない (CompiledCampaign 側で保持する)。
    """
    id: Identifier
    key: str
    status: str
    traffic_allocation: int
    variations: Tuple[Variation, ...]
    goals: Tuple[Goal, ...] = ()


@dataclass(frozen=True)
class VariationRange:
    variation: Variation
    start: int
    end: int

    @property
    def id(self) -> Identifier:
        return self.variation.id

    @property
    def name(self) -> str:
        return self.variation.name

    @property
    def weight(self) -> Optional[float]:
        return self.variation.weight

    def covers(self, bucket: int) -> bool:
        return self.start <= bucket <= self.end


@dataclass(frozen=True)
class CompiledCampaign:
    """Campaign plus the bucket ranges computed once at load time."""
    campaign: Campaign
    variations: Tuple[VariationRange, ...]

    @property
    def id(self) -> Identifier:
        return self.campaign.id

    @property
    def key(self) -> str:
        return self.campaign.key

    @property
    def status(self) -> str:
        return self.campaign.status

    @property
    def traffic_allocation(self) -> int:
        return self.campaign.traffic_allocation

    @property
    def goals(self) -> Tuple[Goal, ...]:
        return self.campaign.goals

    def is_running(self) -> bool:
        return self.status == STATUS_RUNNING

    def find_variation(self, name: str) -> Optional[VariationRange]:
        for variation in self.variations:
            if variation.name == name:
                return variation
        return None

    def find_goal(self, identifier: str) -> Optional[Goal]:
        for goal in self.goals:
            if goal.identifier == identifier:
                return goal
        return None


@dataclass(frozen=True)
class SettingsDocument:
    account_id: Optional[Identifier]
    version: Optional[Identifier]
    campaigns: Tuple[CompiledCampaign, ...] = ()

    def get_campaign(self, key: str) -> Optional[CompiledCampaign]:
        for campaign in self.campaigns:
            if campaign.key == key:
                return campaign
        return None


class Decision(NamedTuple):
    variation_id: Optional[Identifier]
    variation_name: Optional[str]


NO_DECISION = Decision(None, None)
