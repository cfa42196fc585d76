import json

import pytest

from src.errors import InvalidArgument
from src.settings.loader import EMPTY_SETTINGS, load


@pytest.fixture
def document():
    return {
        "version": 1,
        "accountId": 60781,
        "campaigns": [
            {
                "id": 230,
                "key": "checkout",
                "status": "RUNNING",
                "percentTraffic": 50,
                "variations": [
                    {"id": 1, "name": "Control", "weight": 50},
                    {"id": 2, "name": "Variation-1", "weight": "50"},
                ],
                "goals": [
                    {"id": 1, "identifier": "purchase", "type": "REVENUE_TRACKING"},
                    {"id": 2, "identifier": "signup", "type": "CUSTOM_GOAL"},
                ],
            },
            {
                "id": 231,
                "key": "banner",
                "status": "PAUSED",
                "percentTraffic": 100,
                "variations": [
                    {"id": 1, "name": "Control", "weight": 0},
                    {"id": 2, "name": "Variation-1"},
                    {"id": 3, "name": "Variation-2", "weight": 100},
                ],
            },
        ],
    }


def test_load_compiles_campaign_ranges(document):
    settings = load(document)

    assert settings.account_id == 60781
    assert settings.version == 1
    checkout = settings.get_campaign("checkout")
    assert checkout.traffic_allocation == 50
    assert checkout.is_running()
    assert [(v.name, v.weight, v.start, v.end) for v in checkout.variations] == [
        ("Control", 50.0, 1, 5000),
        ("Variation-1", 50.0, 5001, 10000),
    ]
    assert checkout.find_goal("purchase").type == "REVENUE_TRACKING"


def test_load_handles_unweighted_variations(document):
    banner = load(document).get_campaign("banner")

    assert not banner.is_running()
    assert [(v.start, v.end) for v in banner.variations] == [(-1, -1), (-1, -1), (1, 10000)]
    assert banner.goals == ()


def test_load_accepts_json_string(document):
    settings = load(json.dumps(document))
    assert settings.get_campaign("checkout") is not None
    assert settings.get_campaign("unknown") is None


def test_empty_campaign_object_means_no_campaigns():
    settings = load('{"version": 1, "accountId": "60781", "campaigns": {}}')
    assert settings.campaigns == ()
    assert settings.account_id == "60781"


def test_invalid_json_is_rejected():
    with pytest.raises(InvalidArgument):
        load("{not json")


def test_missing_required_fields_is_rejected(document):
    del document["accountId"]
    with pytest.raises(InvalidArgument):
        load(document)


def test_duplicate_campaign_keys_are_rejected(document):
    document["campaigns"][1]["key"] = "checkout"
    with pytest.raises(InvalidArgument, match="unique"):
        load(document)


def test_duplicate_variation_names_are_rejected(document):
    document["campaigns"][0]["variations"][1]["name"] = "Control"
    with pytest.raises(InvalidArgument, match="unique"):
        load(document)


@pytest.mark.parametrize("traffic", [-1, 101, "lots"])
def test_traffic_allocation_out_of_range_is_rejected(document, traffic):
    document["campaigns"][0]["percentTraffic"] = traffic
    with pytest.raises(InvalidArgument):
        load(document)


def test_negative_weight_is_rejected(document):
    document["campaigns"][0]["variations"][0]["weight"] = -5
    with pytest.raises(InvalidArgument):
        load(document)


def test_empty_settings_has_no_campaigns():
    assert EMPTY_SETTINGS.campaigns == ()
    assert EMPTY_SETTINGS.get_campaign("checkout") is None
