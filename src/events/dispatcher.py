import logging
from typing import Any, Dict, Optional

import requests

from src.observability.logging import get_logger, log_impression


class EventDispatcher:
    """
    Impression を1回の HTTP GET で送信する。リトライは行わない。
    development_mode では送信せずに成功扱いとする。
    """
    def __init__(self, development_mode: bool = False, session: Any = None, timeout: float = 5.0,
                 logger: Optional[logging.Logger] = None):
        self.development_mode = development_mode
        self.timeout = timeout
        self.logger = get_logger(logger)
        self._session = session if session is not None else requests.Session()

    def dispatch(self, properties: Dict[str, Any]) -> bool:
        if self.development_mode:
            return True

        url = properties.get("url")
        params = {k: v for k, v in properties.items() if k != "url"}

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error("Impression event could not be sent - %s: %s", url, e)
            log_impression(self.logger, properties, delivered=False)
            return False

        delivered = response.status_code == 200
        log_impression(self.logger, properties, delivered=delivered)
        return delivered
