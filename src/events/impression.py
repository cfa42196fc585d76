import json
import logging
import random
import time
import uuid
from typing import Any, Dict, Optional, Union
from urllib.parse import quote_plus

from src.campaign import Identifier, SettingsDocument
from src.constants import (
    BASE_URL,
    PLATFORM,
    SDK_NAME,
    SDK_VERSION,
    TRACK_GOAL_PATH,
    TRACK_USER_PATH,
)
from src.observability.logging import get_logger

ACCOUNT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, 'https://vwo.com')


def user_uuid(user_id: Any, account_id: Any) -> str:
    """account_id ごとの名前空間で user_id から UUIDv5 を生成する (ハイフン無し・大文字)。"""
    account_namespace = uuid.uuid5(ACCOUNT_NAMESPACE, str(account_id))
    return uuid.uuid5(account_namespace, str(user_id)).hex.upper()


def build_impression(settings: SettingsDocument, campaign_id: Identifier, variation_id: Identifier,
                     user_id: str, goal_id: Optional[Identifier] = None,
                     revenue: Optional[Union[int, float, str]] = None,
                     logger: Optional[logging.Logger] = None) -> Optional[Dict[str, Any]]:
    """
    Build the querystring properties of a track-user impression, or of a
    track-goal impression when goal_id is given.

    Returns None when campaign_id is not a number or user_id is not a string.
    """
    log = get_logger(logger)

    is_number = isinstance(campaign_id, (int, float)) and not isinstance(campaign_id, bool)
    if not is_number or not isinstance(user_id, str):
        return None

    account_id = settings.account_id
    properties: Dict[str, Any] = {
        "account_id": account_id,
        "experiment_id": campaign_id,
        "ap": PLATFORM,
        "uId": quote_plus(user_id),
        "combination": variation_id,
        "random": random.random(),
        "sId": int(time.time()),
        "u": user_uuid(user_id, account_id),
        "sdk": SDK_NAME,
        "sdk-v": SDK_VERSION,
    }

    url = f"https://{BASE_URL}"
    if goal_id is None:
        properties["ed"] = json.dumps({"p": PLATFORM}, separators=(',', ':'))
        properties["url"] = url + TRACK_USER_PATH
        log.debug("Impression built for track-user - %s", json.dumps(properties))
    else:
        properties["url"] = url + TRACK_GOAL_PATH
        properties["goal_id"] = goal_id
        if revenue is not None:
            properties["r"] = revenue
        log.debug("Impression built for track-goal - %s", json.dumps(properties))

    return properties
