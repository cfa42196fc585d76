import logging
from typing import Any, Optional

from src.bucketing.bucketer import Bucketer, is_valid_user_id
from src.campaign import NO_DECISION, CompiledCampaign, Decision, SettingsDocument, VariationRange
from src.decision.storage import UserRecord, UserStorage, ensure_user_storage, merge_record, stored_variation_name
from src.observability.logging import get_logger, log_decision


class DecisionEngine:
    """
    Sticky store -> Bucketer の順でユーザーの Variation を決定する。

    決定は (user_id, キャンペーン定義, store の内容) のみに依存し、
    時刻や乱数には依存しない。
    """
    def __init__(self, bucketer: Optional[Bucketer] = None, user_storage: Optional[UserStorage] = None,
                 settings: Optional[SettingsDocument] = None, logger: Optional[logging.Logger] = None):
        self.logger = get_logger(logger)
        self.bucketer = bucketer if bucketer is not None else Bucketer(logger=self.logger)
        self.user_storage = ensure_user_storage(user_storage)
        self.settings = settings

    def decide(self, user_id: Any, campaign: Optional[CompiledCampaign],
               campaign_key: Optional[str] = None) -> Decision:
        if not is_valid_user_id(user_id):
            self.logger.error("Invalid userId:%r passed to decide", user_id)
            return NO_DECISION

        if campaign_key is None and campaign is not None:
            campaign_key = campaign.key

        record = self._lookup(user_id)
        stored = self._stored_variation(user_id, campaign, campaign_key, record)
        if stored is not None:
            decision = Decision(stored.id, stored.name)
            log_decision(self.logger, user_id, campaign_key, decision, "sticky")
            return decision

        decision = self.bucket(user_id, campaign)
        if decision.variation_name is None:
            log_decision(self.logger, user_id, campaign_key, decision, "none")
            return decision

        self._save(user_id, record, campaign_key, decision.variation_name)
        log_decision(self.logger, user_id, campaign_key, decision, "bucketed")
        return decision

    def decide_for_key(self, user_id: Any, campaign_key: str) -> Decision:
        campaign = self.settings.get_campaign(campaign_key) if self.settings is not None else None
        if campaign is None:
            self.logger.error("Campaign:%s not found in settings", campaign_key)
            return NO_DECISION
        return self.decide(user_id, campaign, campaign_key)

    def bucket(self, user_id: Any, campaign: Optional[CompiledCampaign]) -> Decision:
        """Fresh bucketing without consulting the sticky store."""
        if not is_valid_user_id(user_id):
            self.logger.error("Invalid userId:%r passed to bucket", user_id)
            return NO_DECISION

        if not self.bucketer.is_in_campaign(user_id, campaign):
            self.logger.debug(
                "userId:%s did not become part of campaign:%s", user_id, campaign.key if campaign else None
            )
            return NO_DECISION

        variation = self.bucketer.assign_variation(user_id, campaign)
        if variation is None:
            self.logger.debug("userId:%s for campaign:%s did not get any variation", user_id, campaign.key)
            return NO_DECISION

        return Decision(variation.id, variation.name)

    def _lookup(self, user_id: Any) -> Optional[UserRecord]:
        if self.user_storage is None:
            self.logger.debug("No user storage to look for stored data")
            return None

        try:
            record = self.user_storage.lookup(user_id)
        except Exception as e:
            self.logger.error("Looking up user storage failed for userId:%s: %s", user_id, e)
            return None

        self.logger.debug("Looked into user storage for userId:%s %s",
                          user_id, "Found" if record is not None else "Not Found")
        return record

    def _stored_variation(self, user_id: Any, campaign: Optional[CompiledCampaign],
                          campaign_key: Optional[str], record: Optional[UserRecord]) -> Optional[VariationRange]:
        if record is None or campaign is None or campaign_key is None:
            return None

        variation_name = stored_variation_name(record, campaign_key)
        if variation_name is None:
            self.logger.debug("No stored variation for userId:%s for campaign:%s", user_id, campaign_key)
            return None

        # 現在のキャンペーン定義に存在しない名前は無視して再計算する
        variation = campaign.find_variation(variation_name)
        if variation is None:
            self.logger.info(
                "Stored variation:%s for userId:%s no longer exists in campaign:%s",
                variation_name, user_id, campaign_key,
            )
        return variation

    def _save(self, user_id: str, record: Optional[UserRecord], campaign_key: Optional[str],
              variation_name: str):
        if self.user_storage is None or campaign_key is None:
            return

        try:
            self.user_storage.save(user_id, merge_record(user_id, record, campaign_key, variation_name))
        except Exception as e:
            self.logger.error("Saving data into user storage failed for userId:%s: %s", user_id, e)
            return

        self.logger.info("Saved variation:%s of campaign:%s for userId:%s", variation_name, campaign_key, user_id)
