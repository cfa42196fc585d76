from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GoalSchema(BaseModel):
    id: Union[int, str]
    identifier: str
    type: str

    model_config = ConfigDict(populate_by_name=True)


class VariationSchema(BaseModel):
    id: Union[int, str]
    name: str
    weight: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(populate_by_name=True)


class CampaignSchema(BaseModel):
    id: Union[int, str]
    key: str
    status: str
    traffic_allocation: int = Field(..., alias="percentTraffic", ge=0, le=100)
    variations: List[VariationSchema]
    goals: List[GoalSchema] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_unique_variation_names(self) -> "CampaignSchema":
        names = [v.name for v in self.variations]
        if len(names) != len(set(names)):
            raise ValueError(f"Variation names must be unique in campaign {self.key}")
        return self


class SettingsSchema(BaseModel):
    version: Union[int, str]
    account_id: Union[int, str] = Field(..., alias="accountId")
    campaigns: List[CampaignSchema]

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("campaigns", mode="before")
    @classmethod
    def empty_object_means_no_campaigns(cls, value: Any) -> Any:
        # 設定サーバーはキャンペーンが無い場合に {} を返すことがある
        if isinstance(value, dict) and not value:
            return []
        return value

    @model_validator(mode="after")
    def check_unique_campaign_keys(self) -> "SettingsSchema":
        keys = [c.key for c in self.campaigns]
        if len(keys) != len(set(keys)):
            raise ValueError("Campaign keys must be unique within a settings document")
        return self
