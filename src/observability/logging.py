import json
import logging
from typing import Any, Dict, Optional

from src.campaign import Decision

logger = logging.getLogger("bucketing")
logger.setLevel(logging.INFO)
# Handler設定は実行環境に依存するため、ここでは標準出力への出力のみを想定
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(handler)


def get_logger(override: Optional[logging.Logger] = None) -> logging.Logger:
    return override if override is not None else logger


def log_decision(log: logging.Logger, user_id: Any, campaign_key: Optional[str],
                 decision: Decision, source: str):
    """
    割り当て結果を構造化ログ(JSON)として出力する。
    source は "sticky" / "bucketed" / "none" のいずれか。
    """
    log_data = {
        "event": "variation_decided",
        "user_id": user_id,
        "campaign_key": campaign_key,
        "variation_id": decision.variation_id,
        "variation_name": decision.variation_name,
        "source": source,
    }

    log.info(json.dumps(log_data, default=str))


def log_impression(log: logging.Logger, properties: Dict[str, Any], delivered: bool):
    log_data = {
        "event": "impression_dispatched",
        "url": properties.get("url"),
        "account_id": properties.get("account_id"),
        "campaign_id": properties.get("experiment_id"),
        "variation_id": properties.get("combination"),
        "goal_id": properties.get("goal_id"),
        "delivered": delivered,
    }

    level = logging.INFO if delivered else logging.ERROR
    log.log(level, json.dumps(log_data, default=str))
