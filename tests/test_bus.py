"""Tests for hassha.bus."""

from datetime import datetime

from hassha.bus import flatten_schedule, merge_bus_stops, parse_bus_source, parse_bus_stops
from hassha.models import DayClassification, SplitByDayType, Uniform

WEEKDAY = DayClassification(is_holiday=False)
HOLIDAY = DayClassification(is_holiday=True, name="日曜日")


class TestFlattenSchedule:
    def test_expands_buckets(self):
        deps = flatten_schedule(
            [{"hour": 7, "minutes": [5, 25]}, {"hour": "8", "minutes": ["10"]}], "route"
        )
        assert [(d.hour, d.minute) for d in deps] == [(7, 5), (7, 25), (8, 10)]
        assert all(d.destination == "route" and d.label == "" for d in deps)

    def test_malformed_buckets_skipped(self):
        """Verify that bad hours, bad minute lists and bad minutes are skipped."""
        deps = flatten_schedule(
            [
                {"hour": 24, "minutes": [5]},
                {"hour": 7, "minutes": "5"},
                {"minutes": [5]},
                "7:05",
                {"hour": 7, "minutes": [60, "x", 15]},
            ],
            "route",
        )
        assert [(d.hour, d.minute) for d in deps] == [(7, 15)]

    def test_not_a_list(self):
        assert flatten_schedule(None, "route") == ()


class TestParseBusStops:
    def test_stops_shape(self, sample_bus_raw):
        stops = parse_bus_stops(sample_bus_raw)
        assert len(stops) == 4
        assert stops[0].stop_name == "近畿大学東門前"
        assert stops[0].route_name == "近畿大学東門前→八戸ノ里駅前"
        assert stops[0].operation_type == "A"
        assert isinstance(stops[0].schedule, Uniform)

    def test_excluded_stops(self, sample_bus_raw):
        stops = parse_bus_stops(sample_bus_raw, exclude_stops=["八戸ノ里駅前"])
        assert {s.stop_name for s in stops} == {"近畿大学東門前"}

    def test_bare_record_list(self, sample_bus_raw):
        assert parse_bus_stops(sample_bus_raw["stops"]) == parse_bus_stops(sample_bus_raw)

    def test_record_without_stop_name_skipped(self):
        stops = parse_bus_stops({"stops": [{"routeName": "r", "schedule": []}, "junk"]})
        assert stops == []

    def test_non_string_stop_name_skipped(self):
        """Verify that list and int stop names drop only their own record."""
        stops = parse_bus_stops(
            {
                "stops": [
                    {"stopName": ["x"], "routeName": "r1", "schedule": []},
                    {"stopName": 123, "routeName": "r2", "schedule": []},
                    {"stopName": "近畿大学東門前", "routeName": "r3", "schedule": []},
                ]
            },
            exclude_stops=["八戸ノ里駅前"],
        )
        assert [s.stop_name for s in stops] == ["近畿大学東門前"]

    def test_non_string_operation_type_ignored(self):
        (stop,) = parse_bus_stops(
            {"stops": [{"stopName": "s", "operationType": ["A"], "schedule": []}]}
        )
        assert stop.operation_type is None

    def test_legacy_split_shape(self):
        """Verify that the legacy stop -> route -> weekday/holiday shape is read."""
        raw = {
            "lastUpdated": "2024-05-07T06:00:00+09:00",
            "近畿大学東門前": {
                "近畿大学東門前→八戸ノ里駅前": {
                    "weekday": [{"hour": "9", "minute": "10", "destination": "ignored"}],
                    "holiday": [],
                },
            },
        }
        (stop,) = parse_bus_stops(raw)
        assert stop.operation_type is None
        assert isinstance(stop.schedule, SplitByDayType)
        assert stop.schedule.weekday[0].destination == "近畿大学東門前→八戸ノ里駅前"

    def test_unusable_payload(self):
        assert parse_bus_stops("nope") == []


class TestParseBusSource:
    def test_metadata(self, sample_bus_raw):
        source = parse_bus_source("kintetsuBus", sample_bus_raw, title="近鉄バス")
        assert source.operator == "kintetsuBus"
        assert source.title == "近鉄バス"
        assert source.operation_type == "A"
        assert source.date == "2024-05-07"

    def test_title_defaults_to_operator(self):
        source = parse_bus_source("osakaBus", {"stops": []})
        assert source.title == "osakaBus"
        assert source.operation_type is None


class TestMergeBusStops:
    def test_routes_interleave_by_time(self, sample_bus_raw):
        """Verify that two routes at one stop are merged before ranking."""
        stops = parse_bus_stops(sample_bus_raw)
        merged = merge_bus_stops(stops, WEEKDAY, datetime(2024, 5, 7, 9, 0), cap=4)
        trains = merged["近畿大学東門前"]
        assert [t.time for t in trains] == ["9:10", "9:15", "9:30", "9:35"]
        assert [t.destination for t in trains] == [
            "近畿大学東門前→八戸ノ里駅前",
            "近畿大学東門前→俊徳道駅",
            "近畿大学東門前→八戸ノ里駅前",
            "近畿大学東門前→俊徳道駅",
        ]

    def test_first_seen_stop_order(self, sample_bus_raw):
        stops = parse_bus_stops(sample_bus_raw)
        merged = merge_bus_stops(stops, WEEKDAY, datetime(2024, 5, 7, 9, 0), cap=4)
        assert list(merged) == ["近畿大学東門前", "八戸ノ里駅前"]

    def test_operation_type_filter(self, sample_bus_raw):
        """Verify that on a holiday only B records are used."""
        stops = parse_bus_stops(sample_bus_raw)
        merged = merge_bus_stops(stops, HOLIDAY, datetime(2024, 5, 12, 9, 0), cap=4)
        assert [t.time for t in merged["近畿大学東門前"]] == ["9:01"]
        assert merged["八戸ノ里駅前"] == []

    def test_cap_applies_per_stop(self, sample_bus_raw):
        stops = parse_bus_stops(sample_bus_raw)
        merged = merge_bus_stops(stops, WEEKDAY, datetime(2024, 5, 7, 9, 0), cap=2)
        assert len(merged["近畿大学東門前"]) == 2
        assert len(merged["八戸ノ里駅前"]) == 1

    def test_legacy_shape_equivalent(self, sample_bus_raw):
        """Verify that both payload shapes give the same board for the same data."""
        legacy = {
            "近畿大学東門前": {
                "近畿大学東門前→八戸ノ里駅前": [
                    {"hour": 9, "minute": m} for m in (10, 30, 50)
                ],
                "近畿大学東門前→俊徳道駅": [{"hour": 9, "minute": m} for m in (15, 35)],
            },
            "八戸ノ里駅前": {
                "八戸ノ里駅前→近畿大学東門前": [{"hour": 9, "minute": 5}],
            },
        }
        current = dict(sample_bus_raw)
        current["stops"] = [s for s in sample_bus_raw["stops"] if s["operationType"] == "A"]
        now = datetime(2024, 5, 7, 9, 0)
        assert merge_bus_stops(parse_bus_stops(legacy), WEEKDAY, now, 4) == merge_bus_stops(
            parse_bus_stops(current), WEEKDAY, now, 4
        )

    def test_no_records(self):
        assert merge_bus_stops([], WEEKDAY, datetime(2024, 5, 7, 9, 0), 4) == {}
