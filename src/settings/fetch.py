import logging
import random
from typing import Any, Optional, Union

import requests

from src.constants import ACCOUNT_SETTINGS_PATH, API_VERSION, BASE_URL, PLATFORM
from src.observability.logging import get_logger

SETTINGS_URL = f"https://{BASE_URL}{ACCOUNT_SETTINGS_PATH}"


def fetch_settings(account_id: Union[int, str], sdk_key: str, session: Any = None,
                   timeout: float = 10.0, logger: Optional[logging.Logger] = None) -> str:
    """
    設定サーバーから settings JSON を文字列のまま取得する。
    取得できない場合は空のドキュメント "{}" を返す (検証は呼び出し側の責務)。
    """
    log = get_logger(logger)

    has_account = isinstance(account_id, (int, str)) and not isinstance(account_id, bool)
    if not has_account or not isinstance(sdk_key, str):
        log.error("account_id and sdk_key are required for fetching account settings. Aborting!")
        return "{}"

    params = {
        "a": account_id,
        "i": sdk_key,
        "r": random.random(),
        "platform": PLATFORM,
        "api-version": API_VERSION,
    }
    http = session if session is not None else requests

    try:
        response = http.get(SETTINGS_URL, params=params, timeout=timeout)
    except requests.RequestException as e:
        log.error("Error fetching settings file: %s", e)
        return "{}"

    if response.status_code != 200:
        log.error(
            "Request failed for fetching account settings. Got Status Code: %s and message: %s",
            response.status_code, response.text,
        )
    return response.text
