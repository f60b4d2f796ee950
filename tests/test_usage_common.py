from datetime import datetime, timedelta, timezone

import pytest

from ccline.segments.usage_common import (
    UsageBarOpts,
    UsageData,
    cache_dir,
    elapsed_secs,
    format_countdown,
    generate_bar,
    get_proxy_from_settings,
    get_setting_env,
    heat_color,
    is_timestamp_valid,
    lerp,
    read_settings_json,
    render_usage_output,
)

BRACKET = "\x1b[38;2;70;70;70m"
DIM = "\x1b[38;2;40;40;40m"


def test_lerp_endpoints():
    assert lerp(10, 20, 0.0) == 10
    assert lerp(10, 20, 1.0) == 20


def test_lerp_truncates_midpoint():
    assert lerp(0, 255, 0.5) == 127


def test_lerp_clamps():
    assert lerp(0, 255, 2.0) == 255
    assert lerp(100, 0, 2.0) == 0


def test_heat_color_stops():
    assert heat_color(0.0) == (0, 200, 180)
    assert heat_color(0.2) == (76, 210, 100)
    assert heat_color(1.0) == (240, 60, 50)


def test_heat_color_clamps_input():
    assert heat_color(-1.0) == heat_color(0.0)
    assert heat_color(5.0) == heat_color(1.0)


def test_plain_bar_empty_and_full():
    assert generate_bar(0.0, 10, "cat", False) == "▕" + "░" * 10 + "▏"
    assert generate_bar(100.0, 10, "cat", False) == "▕" + "█" * 10 + "▏"
    assert generate_bar(250.0, 10, "cat", False) == generate_bar(100.0, 10, "cat", False)
    assert generate_bar(-5.0, 10, "cat", False) == generate_bar(0.0, 10, "cat", False)


def test_plain_bar_partial_block():
    assert generate_bar(50.0, 1, "cat", False) == "▕▌▏"


@pytest.mark.parametrize("width", [1, 5, 10, 20])
def test_plain_bar_width_invariant(width):
    for pct in (0.0, 3.3, 12.5, 50.0, 77.7, 100.0):
        assert len(generate_bar(pct, width, "cat", False)) == width + 2


def test_plain_bar_fill_is_monotonic():
    counts = [generate_bar(float(p), 20, "cat", False).count("█") for p in range(0, 101, 5)]
    assert counts == sorted(counts)


def test_colored_bar_structure():
    bar = generate_bar(0.0, 8, "cat", True)
    assert bar == f"{BRACKET}▕{DIM}{'░' * 8}{BRACKET}▏"


def test_colored_bar_matches_plain_fill():
    for pct in (10.0, 42.0, 99.0):
        colored = generate_bar(pct, 12, "cat", True)
        plain = generate_bar(pct, 12, "cat", False)
        assert colored.startswith(f"{BRACKET}▕")
        assert colored.endswith(f"{BRACKET}▏")
        assert colored.count("█") == plain.count("█")
        assert colored.count("░") == plain.count("░")


def test_countdown_empty_for_missing_or_past():
    assert format_countdown(None) == ""
    assert format_countdown(0) == ""
    assert format_countdown(-30) == ""


def test_countdown_hours_and_minutes():
    result = format_countdown(7260)
    assert result.endswith(" 2h 1m")
    assert "◆" in result


def test_countdown_minimum_one_minute():
    assert format_countdown(30)[-3:] == format_countdown(60)[-3:]


def test_read_settings_json(tmp_path):
    settings_dir = tmp_path / ".claude"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text('{"env": {"HTTP_PROXY": "http://p:1"}}')
    assert read_settings_json(tmp_path) == {"env": {"HTTP_PROXY": "http://p:1"}}


def test_read_settings_json_uses_home_env(tmp_path, monkeypatch):
    settings_dir = tmp_path / ".claude"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text('{"a": 1}')
    monkeypatch.setenv("HOME", str(tmp_path))
    assert read_settings_json() == {"a": 1}


def test_read_settings_json_missing_or_invalid(tmp_path):
    assert read_settings_json(tmp_path) is None
    settings_dir = tmp_path / ".claude"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text("{not json")
    assert read_settings_json(tmp_path) is None


def test_get_setting_env():
    settings = {"env": {"KEY": "value", "NUM": 3}}
    assert get_setting_env(settings, "KEY") == "value"
    assert get_setting_env(settings, "NUM") is None
    assert get_setting_env(settings, "MISSING") is None
    assert get_setting_env({"other": {}}, "KEY") is None
    assert get_setting_env(["env"], "KEY") is None


def test_proxy_prefers_https(tmp_path):
    settings_dir = tmp_path / ".claude"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text(
        '{"env": {"HTTP_PROXY": "http://plain:1", "HTTPS_PROXY": "http://secure:2"}}'
    )
    assert get_proxy_from_settings(tmp_path) == "http://secure:2"


def test_proxy_falls_back_to_http(tmp_path):
    settings_dir = tmp_path / ".claude"
    settings_dir.mkdir()
    (settings_dir / "settings.json").write_text('{"env": {"HTTP_PROXY": "http://plain:1"}}')
    assert get_proxy_from_settings(tmp_path) == "http://plain:1"


def test_cache_dir(tmp_path):
    assert cache_dir(tmp_path) == tmp_path / ".claude" / "ccline"


def test_timestamp_validity():
    now = datetime.now(timezone.utc)
    assert is_timestamp_valid(now.isoformat(), 3600)
    recent = (now - timedelta(seconds=10)).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    assert is_timestamp_valid(recent, 3600)
    assert not is_timestamp_valid(recent, 5)
    assert not is_timestamp_valid("2000-01-01T00:00:00Z", 3600)


def test_timestamp_rejects_malformed():
    assert not is_timestamp_valid("not a date", 3600)
    assert not is_timestamp_valid("2000-01-01", 10**12)


def test_elapsed_secs():
    ts = (datetime.now(timezone.utc) - timedelta(seconds=120)).isoformat()
    assert 119 <= elapsed_secs(ts) <= 125
    assert elapsed_secs("garbage") == 0


def test_elapsed_secs_with_offset():
    local = datetime.now(timezone(timedelta(hours=5))) - timedelta(seconds=60)
    assert 59 <= elapsed_secs(local.isoformat()) <= 65


def test_render_usage_output_plain():
    data = UsageData(first_pct=50.0, first_label="5H", second_pct=25.0, second_label="7D")
    output = render_usage_output(data, UsageBarOpts(bar_width=10, bar_colored=False))
    assert output.primary.startswith("5H ▕")
    assert generate_bar(50.0, 10, "cat", False) + " 50%" in output.primary
    assert "  7D " + generate_bar(25.0, 10, "cat", False) + " 25%" in output.primary
    assert output.secondary == ""
    assert output.metadata["block_display"] == "true"
    assert output.metadata["dynamic_icon"] == ""
    assert output.metadata["five_hour_utilization"] == "50"
    assert output.metadata["seven_day_utilization"] == "25"


def test_render_usage_output_clamps_percent_text():
    data = UsageData(first_pct=-3.0, first_label="A", second_pct=400.0, second_label="B")
    output = render_usage_output(data, UsageBarOpts(bar_width=4, bar_colored=False))
    assert " 0%" in output.primary
    assert " 255%" in output.primary