from unittest.mock import MagicMock

import requests

from src.settings.fetch import SETTINGS_URL, fetch_settings


def test_fetch_settings_success():
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=200, text='{"version": 1}')

    assert fetch_settings(60781, "sdk-key", session=session) == '{"version": 1}'

    args, kwargs = session.get.call_args
    assert args[0] == SETTINGS_URL
    assert kwargs["params"]["a"] == 60781
    assert kwargs["params"]["i"] == "sdk-key"
    assert kwargs["params"]["platform"] == "server"
    assert kwargs["params"]["api-version"] == 2


def test_fetch_settings_non_200_returns_body():
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=403, text="forbidden")

    assert fetch_settings(60781, "sdk-key", session=session) == "forbidden"


def test_fetch_settings_network_error_returns_empty_document():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("unreachable")

    assert fetch_settings(60781, "sdk-key", session=session) == "{}"


def test_fetch_settings_requires_credentials():
    session = MagicMock()

    assert fetch_settings(60781, None, session=session) == "{}"
    assert fetch_settings(None, "sdk-key", session=session) == "{}"
    session.get.assert_not_called()
