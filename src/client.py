import logging
from typing import Any, Mapping, Optional, Tuple, Union

from src.campaign import CompiledCampaign, Decision, SettingsDocument
from src.config import SdkConfig, SettingsManager
from src.constants import GOAL_TYPE_CUSTOM, GOAL_TYPE_REVENUE
from src.decision.engine import DecisionEngine
from src.decision.storage import UserStorage, ensure_user_storage
from src.events.dispatcher import EventDispatcher
from src.events.impression import build_impression
from src.observability.logging import get_logger
from src.settings.fetch import fetch_settings

Outcome = Tuple[Optional[SettingsDocument], Optional[CompiledCampaign], Optional[Decision]]


class ExperimentClient:
    """
    アプリケーション向けの入口。
    キャンペーンが RUNNING であることを確認し、DecisionEngine で割り当てを決め、
    必要に応じて impression を送信する。
    """
    def __init__(self, config: SdkConfig, settings_manager: SettingsManager,
                 user_storage: Optional[UserStorage] = None, dispatcher: Optional[EventDispatcher] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = get_logger(logger)
        self.settings_manager = settings_manager
        self.user_storage = ensure_user_storage(user_storage)
        self.dispatcher = dispatcher if dispatcher is not None else EventDispatcher(
            development_mode=config.development_mode, logger=self.logger
        )
        self._engine: Optional[DecisionEngine] = None

    def engine(self) -> DecisionEngine:
        # 設定が丸ごと差し替わったらエンジンも作り直す
        settings = self.settings_manager.get_settings()
        if self._engine is None or self._engine.settings is not settings:
            self._engine = DecisionEngine(user_storage=self.user_storage, settings=settings, logger=self.logger)
        return self._engine

    def decide(self, user_id: str, campaign_key: str) -> Optional[Decision]:
        _, _, decision = self._decide(user_id, campaign_key, api="decide")
        return decision

    def activate(self, campaign_key: str, user_id: str) -> Optional[str]:
        settings, campaign, decision = self._decide(user_id, campaign_key, api="activate")
        if decision is None:
            return None

        properties = build_impression(settings, campaign.id, decision.variation_id, user_id, logger=self.logger)
        if properties is not None:
            self.dispatcher.dispatch(properties)
        return decision.variation_name

    def get_variation(self, campaign_key: str, user_id: str) -> Optional[str]:
        _, _, decision = self._decide(user_id, campaign_key, api="get_variation")
        return decision.variation_name if decision is not None else None

    def track(self, campaign_key: str, user_id: str, goal_identifier: str,
              revenue_value: Optional[Union[int, float, str]] = None) -> bool:
        if not isinstance(goal_identifier, str):
            self.logger.error("track API got bad parameters: goal_identifier must be a string")
            return False

        settings, campaign, decision = self._decide(user_id, campaign_key, api="track")
        if decision is None:
            return False

        goal = campaign.find_goal(goal_identifier)
        if goal is None:
            self.logger.error(
                "Goal:%s not found for campaign:%s and userId:%s", goal_identifier, campaign_key, user_id
            )
            return False
        if goal.type == GOAL_TYPE_REVENUE and revenue_value is None:
            self.logger.error(
                "Revenue value should be passed for revenue goal:%s for campaign:%s and userId:%s",
                goal_identifier, campaign_key, user_id,
            )
            return False
        if goal.type == GOAL_TYPE_CUSTOM:
            revenue_value = None

        properties = build_impression(
            settings, campaign.id, decision.variation_id, user_id,
            goal_id=goal.id, revenue=revenue_value, logger=self.logger,
        )
        if properties is not None:
            self.dispatcher.dispatch(properties)
        return True

    def _decide(self, user_id: Any, campaign_key: Any, api: str) -> Outcome:
        if not isinstance(campaign_key, str) or not isinstance(user_id, str):
            self.logger.error(
                "%s API got bad parameters. It expects campaign_key(str) and user_id(str)", api
            )
            return None, None, None

        engine = self.engine()
        campaign = engine.settings.get_campaign(campaign_key)
        if campaign is None or not campaign.is_running():
            self.logger.error("API used:%s - Campaign:%s is not RUNNING", api, campaign_key)
            return engine.settings, None, None

        decision = engine.decide(user_id, campaign, campaign_key)
        if decision.variation_name is None:
            self.logger.info("Variation was not assigned to userId:%s for campaign:%s", user_id, campaign_key)
            return engine.settings, campaign, None
        return engine.settings, campaign, decision


def create_client(account_id: Optional[Union[int, str]] = None, sdk_key: Optional[str] = None,
                  settings: Optional[Union[str, Mapping[str, Any], SettingsDocument]] = None,
                  user_storage: Optional[UserStorage] = None, development_mode: Optional[bool] = None,
                  settings_parameter: Optional[str] = None, config: Optional[SdkConfig] = None,
                  logger: Optional[logging.Logger] = None) -> ExperimentClient:
    """
    Factory function to build an ExperimentClient.

    Args:
        account_id: Account identifier
        sdk_key: SDK key used to fetch settings from the settings server
        settings: Settings document to load up front (pinned until refresh)
        user_storage: Optional sticky store implementing lookup/save
        development_mode: Skip impression delivery when True
        settings_parameter: Read settings from this SSM parameter instead of the settings server
        config: Explicit SdkConfig; when omitted it is read from EXPERIMENT_* environment
            variables and the arguments above override it

    Returns:
        ExperimentClient
    """
    log = get_logger(logger)

    if config is None:
        overrides = {
            "account_id": account_id,
            "sdk_key": sdk_key,
            "development_mode": development_mode,
            "settings_parameter": settings_parameter,
        }
        config = SdkConfig(**{k: v for k, v in overrides.items() if v is not None})

    if config.settings_parameter is not None:
        manager = SettingsManager(parameter_name=config.settings_parameter,
                                  ttl_seconds=config.settings_ttl_seconds, logger=log)
    else:
        manager = SettingsManager(
            ttl_seconds=config.settings_ttl_seconds,
            fetcher=lambda: fetch_settings(config.account_id, config.sdk_key, logger=log),
            logger=log,
        )

    if isinstance(settings, SettingsDocument):
        manager.pin(settings)
    elif settings is not None:
        manager.load(settings)

    return ExperimentClient(config, manager, user_storage=user_storage, logger=log)
