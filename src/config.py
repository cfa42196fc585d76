import logging
import time
from typing import Any, Callable, Mapping, Optional, Union

import boto3
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.campaign import SettingsDocument
from src.observability.logging import get_logger
from src.settings.loader import EMPTY_SETTINGS, load

DEFAULT_SETTINGS_PARAMETER = '/experiments/settings'


class SdkConfig(BaseSettings):
    """
    SDK設定。環境変数 EXPERIMENT_* から読み込み、引数で上書きできる。
    settings_parameter を指定すると SSM から、未指定なら設定サーバーから取得する。
    """
    account_id: Union[int, str] = ""
    sdk_key: str = ""
    development_mode: bool = False
    settings_parameter: Optional[str] = None
    settings_ttl_seconds: float = 60.0

    model_config = SettingsConfigDict(
        env_prefix="EXPERIMENT_",
        extra="ignore",
    )


class SettingsManager:
    """
    設定ドキュメントを取得・検証し、TTLの間キャッシュする。
    ドキュメントは丸ごと差し替えるだけで、部分的な更新はしない。
    """
    def __init__(self, parameter_name: str = DEFAULT_SETTINGS_PARAMETER, ttl_seconds: float = 60.0,
                 fetcher: Optional[Callable[[], Union[str, bytes]]] = None,
                 logger: Optional[logging.Logger] = None):
        self.parameter_name = parameter_name
        self.ttl_seconds = ttl_seconds
        self.logger = get_logger(logger)
        self._fetcher = fetcher
        self._cached_settings: Optional[SettingsDocument] = None
        self._last_fetched_at: float = 0.0
        self._pinned = False
        self._ssm_client = boto3.client('ssm') if fetcher is None else None

    def get_settings(self) -> SettingsDocument:
        current_time = time.time()

        if self._cached_settings and self._pinned:
            return self._cached_settings

        # 失敗した取得もTTLの間は再試行しない
        if current_time - self._last_fetched_at < self.ttl_seconds:
            return self._cached_settings or EMPTY_SETTINGS

        try:
            settings = load(self._fetch(), logger=self.logger)
            self._cached_settings = settings
            self._last_fetched_at = current_time
            return settings
        except Exception as e:
            self.logger.error("Error fetching settings: %s", e)
            self._last_fetched_at = current_time
            # 安全側に倒す(前回の設定、なければキャンペーン無し)
            return self._cached_settings or EMPTY_SETTINGS

    def load(self, document: Union[str, bytes, Mapping[str, Any]]) -> SettingsDocument:
        """Load a caller-supplied document and pin it until refresh()."""
        return self.pin(load(document, logger=self.logger))

    def pin(self, settings: SettingsDocument) -> SettingsDocument:
        self._cached_settings = settings
        self._last_fetched_at = time.time()
        self._pinned = True
        return settings

    def refresh(self) -> SettingsDocument:
        self._pinned = False
        self._last_fetched_at = 0.0
        return self.get_settings()

    def _fetch(self) -> Union[str, bytes]:
        if self._fetcher is not None:
            return self._fetcher()
        return self._fetch_from_ssm()

    def _fetch_from_ssm(self) -> str:
        response = self._ssm_client.get_parameter(Name=self.parameter_name, WithDecryption=True)
        return response['Parameter']['Value']
