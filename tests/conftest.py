"""Shared fixtures with sample timetable payloads and holiday CSV."""

from datetime import datetime

import pytest


def _trains(times, destination="大阪難波", train_type="普通"):
    return [
        {"hour": str(h), "minute": str(m), "destination": destination, "trainType": train_type}
        for h, m in times
    ]


@pytest.fixture
def weekday_now():
    """Tuesday 2024-05-07 09:00, not a holiday."""
    return datetime(2024, 5, 7, 9, 0, 0)


@pytest.fixture
def sample_kintetsu_raw():
    """Kintetsu stations with weekday/holiday split directions."""
    return {
        "奈良線 八戸ノ里駅": {
            "奈良線 大阪難波・尼崎(阪神)方面": {
                "weekday": _trains([(9, 5), (9, 12), (9, 20), (9, 28), (9, 35)]),
                "holiday": _trains([(9, 8), (9, 38)]),
            },
            "奈良線 近鉄奈良方面": {
                "weekday": _trains([(9, 3), (9, 18)], "近鉄奈良", "区間準急"),
                "holiday": _trains([(9, 10)], "近鉄奈良", "区間準急"),
            },
        },
        "大阪線 長瀬駅": {
            "大阪線 大阪上本町方面": {
                "weekday": _trains([(9, 2), (9, 17)], "大阪上本町"),
                "holiday": [],
            },
        },
    }


@pytest.fixture
def sample_jr_raw():
    """JR station with bare arrays (no day-type split)."""
    return {
        "ＪＲ俊徳道駅": {
            "放出・新大阪・大阪（地下ホーム）方面": _trains([(9, 4), (9, 19)], "大阪"),
            "久宝寺・奈良方面": _trains([(9, 9), (9, 24)], "奈良"),
        },
    }


@pytest.fixture
def sample_bus_raw():
    """Bus payload in the stops[] shape: two routes through one stop."""
    return {
        "operationType": "A",
        "date": "2024-05-07",
        "stops": [
            {
                "stopName": "近畿大学東門前",
                "routeName": "近畿大学東門前→八戸ノ里駅前",
                "operationType": "A",
                "schedule": [{"hour": 9, "minutes": [10, 30, 50]}],
            },
            {
                "stopName": "近畿大学東門前",
                "routeName": "近畿大学東門前→俊徳道駅",
                "operationType": "A",
                "schedule": [{"hour": 9, "minutes": [15, 35]}],
            },
            {
                "stopName": "近畿大学東門前",
                "routeName": "近畿大学東門前→八戸ノ里駅前",
                "operationType": "B",
                "schedule": [{"hour": 9, "minutes": [1]}],
            },
            {
                "stopName": "八戸ノ里駅前",
                "routeName": "八戸ノ里駅前→近畿大学東門前",
                "operationType": "A",
                "schedule": [{"hour": 9, "minutes": [5]}],
            },
        ],
    }


@pytest.fixture
def sample_timetable_raw(sample_kintetsu_raw, sample_jr_raw, sample_bus_raw):
    """Full /api/all payload."""
    return {
        "kintetsu": sample_kintetsu_raw,
        "jr": sample_jr_raw,
        "kintetsuBus": sample_bus_raw,
        "lastUpdated": "2024-05-07T06:00:00+09:00",
    }


@pytest.fixture
def sample_holiday_csv():
    """Holiday CSV as served by the Cabinet Office (after decoding)."""
    return (
        "国民の祝日・休日月日,国民の祝日・休日名称\n"
        "2024/1/1,元日\n"
        '"2024/5/3","憲法記念日"\n'
        "2024/5/4,みどりの日\n"
        "2024/5/6,休日\n"
        "\n"
        "not-a-date,壊れた行\n"
        "2024/13/40,存在しない日\n"
        "2024/7/15\n"
        "2024/7/15,海の日\n"
    )


@pytest.fixture
def sample_config_yaml(tmp_path):
    """Create a temporary YAML config file."""
    yaml_content = """api:
  base_url: "http://timetable.local:8080"
  timeout: 5

refresh:
  interval_seconds: 600
  clock_seconds: 0.5

board:
  max_trains: 3
  lookahead_hours: 4

stations:
  - key: "奈良線 八戸ノ里駅"
    left: "奈良線 大阪難波・尼崎(阪神)方面"
    right: "奈良線 近鉄奈良方面"
    line: "奈良線"

bus:
  operators:
    - key: osakaBus
      title: "大阪バス"
  exclude_stops: []

colors:
  "奈良線": "#FF0000"

display:
  mode: console
  width: 800
  height: 480
  fullscreen: true
"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml_content, encoding="utf-8")
    return str(config_file)
