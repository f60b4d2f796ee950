import pytest

from ccline.config import (
    Color16,
    Color256,
    ColorConfig,
    Config,
    IconConfig,
    Rgb,
    SegmentConfig,
    SegmentId,
    StyleConfig,
    StyleMode,
    TextStyleConfig,
)
from ccline.input import Cost, InputData, Model, OutputStyle, Workspace
from ccline.segments.base import SegmentData
from ccline.statusline import StatusLineGenerator, collect_all_segments, visible_width

ARROW = "\ue0b0"


def make_config(separator=" | ", mode=StyleMode.PLAIN, segments=None):
    return Config(
        style=StyleConfig(mode=mode, separator=separator),
        segments=segments or [],
        theme="default",
    )


def seg(segment_id=SegmentId.DIRECTORY, enabled=True, plain="", nerd="", colors=None, bold=False, options=None):
    return SegmentConfig(
        id=segment_id,
        enabled=enabled,
        icon=IconConfig(plain=plain, nerd_font=nerd),
        colors=colors or ColorConfig(),
        styles=TextStyleConfig(text_bold=bold),
        options=options or {},
    )


def make_input(cost=None, output_style=None, current_dir="/home/user/project"):
    return InputData(
        model=Model(id="some-model", display_name="Some"),
        workspace=Workspace(current_dir=current_dir),
        transcript_path="/nonexistent/transcript.jsonl",
        cost=cost,
        output_style=output_style,
    )


def test_visible_width_plain_text():
    assert visible_width("hello") == 5


def test_visible_width_strips_escapes():
    assert visible_width("\x1b[38;2;1;2;3mabc\x1b[0m") == visible_width("abc")


def test_visible_width_counts_characters_not_bytes():
    assert visible_width("\x1b[32m✓ é\x1b[0m") == 3


def test_generate_empty_returns_empty_string():
    generator = StatusLineGenerator(make_config())
    assert generator.generate([]) == ""


def test_generate_joins_with_white_separator():
    generator = StatusLineGenerator(make_config(separator=" | "))
    result = generator.generate(
        [(seg(), SegmentData(primary="A")), (seg(SegmentId.COST), SegmentData(primary="B"))]
    )
    assert result == "A\x1b[37m | \x1b[0mB"


def test_generate_skips_disabled_segments():
    generator = StatusLineGenerator(make_config())
    result = generator.generate(
        [(seg(enabled=False), SegmentData(primary="hidden")), (seg(), SegmentData(primary="shown"))]
    )
    assert result == "shown"


def test_generate_skips_empty_rendered_segments():
    generator = StatusLineGenerator(make_config())
    result = generator.generate(
        [(seg(), SegmentData(primary="")), (seg(SegmentId.COST), SegmentData(primary="x"))]
    )
    assert result == "x"


def test_block_segments_go_below_inline():
    generator = StatusLineGenerator(make_config())
    block = SegmentData(primary="bar line", metadata={"block_display": "true"})
    result = generator.generate(
        [(seg(SegmentId.USAGE), block), (seg(), SegmentData(primary="dir"))]
    )
    assert result.split("\n") == ["dir", "bar line"]


def test_multiline_rendered_segment_is_block():
    generator = StatusLineGenerator(make_config())
    result = generator.generate([(seg(), SegmentData(primary="one\n\ntwo"))])
    assert result.split("\n") == ["", "one", "two"]


def test_icon_depends_on_style_mode():
    data = SegmentData(primary="text")
    config = seg(plain="P", nerd="N")
    plain = StatusLineGenerator(make_config(mode=StyleMode.PLAIN)).render_segment(config, data)
    nerd = StatusLineGenerator(make_config(mode=StyleMode.NERD_FONT)).render_segment(config, data)
    power = StatusLineGenerator(make_config(mode=StyleMode.POWERLINE)).render_segment(config, data)
    assert plain == "P text"
    assert nerd == "N text"
    assert power == nerd


def test_dynamic_icon_overrides_configured_icon():
    generator = StatusLineGenerator(make_config())
    data = SegmentData(primary="text", metadata={"dynamic_icon": ""})
    assert generator.render_segment(seg(plain="P"), data) == "text"


def test_secondary_is_appended_with_space():
    generator = StatusLineGenerator(make_config())
    data = SegmentData(primary="main", secondary="extra")
    assert generator.render_segment(seg(), data) == "main extra"


def test_colors_without_background():
    generator = StatusLineGenerator(make_config())
    colors = ColorConfig(icon=Color16(1), text=Color256(200))
    rendered = generator.render_segment(seg(plain="I", colors=colors), SegmentData(primary="t"))
    assert rendered == "\x1b[31mI\x1b[0m \x1b[38;5;200mt\x1b[0m"
    assert visible_width(rendered) == 3


def test_bold_bright_text():
    generator = StatusLineGenerator(make_config())
    colors = ColorConfig(text=Color16(9))
    rendered = generator.render_segment(seg(colors=colors, bold=True), SegmentData(primary="t"))
    assert rendered == "\x1b[1;91mt\x1b[0m"


def test_background_wraps_whole_segment():
    generator = StatusLineGenerator(make_config())
    colors = ColorConfig(text=Rgb(1, 2, 3), background=Color16(4))
    rendered = generator.render_segment(
        seg(colors=colors), SegmentData(primary="t", secondary="s")
    )
    assert rendered.startswith("\x1b[44m")
    assert rendered.endswith("\x1b[49m")
    assert "\x1b[0m" not in rendered
    assert visible_width(rendered) == len(" t s ")


def test_powerline_single_segment_has_no_arrow():
    generator = StatusLineGenerator(make_config(separator=ARROW))
    result = generator.generate([(seg(), SegmentData(primary="only"))])
    assert result == "only"


def test_powerline_arrow_colour_transition():
    generator = StatusLineGenerator(make_config(separator=ARROW))
    first = seg(colors=ColorConfig(background=Color16(1)))
    second = seg(SegmentId.COST, colors=ColorConfig(background=Color16(2)))
    result = generator.generate(
        [(first, SegmentData(primary="a")), (second, SegmentData(primary="b"))]
    )
    assert "\x1b[42m\x1b[31m" + ARROW + "\x1b[0m" in result
    assert result.endswith("\x1b[0m")
    assert result.count(ARROW) == 1


def test_powerline_without_backgrounds_uses_bare_arrow():
    generator = StatusLineGenerator(make_config(separator=ARROW))
    result = generator.generate(
        [(seg(), SegmentData(primary="a")), (seg(SegmentId.COST), SegmentData(primary="b"))]
    )
    assert result == "a" + ARROW + "b\x1b[0m"


def test_collect_all_segments_skips_disabled_and_absent():
    config = make_config(
        segments=[
            seg(SegmentId.DIRECTORY),
            seg(SegmentId.OUTPUT_STYLE, enabled=False),
            seg(SegmentId.COST),
        ]
    )
    results = collect_all_segments(config, make_input(output_style=OutputStyle("explanatory")))
    assert [config.id for config, _ in results] == [SegmentId.DIRECTORY]
    assert results[0][1].primary == "project"


def test_collect_all_segments_preserves_order():
    config = make_config(
        segments=[seg(SegmentId.COST), seg(SegmentId.OUTPUT_STYLE), seg(SegmentId.DIRECTORY)]
    )
    input_data = make_input(cost=Cost(total_cost_usd=1.5), output_style=OutputStyle("concise"))
    results = collect_all_segments(config, input_data)
    assert [data.primary for _, data in results] == ["$1.50", "concise", "project"]


@pytest.mark.parametrize("separator", [" | ", ARROW])
def test_end_to_end_contains_segment_text(separator):
    config = make_config(separator=separator, segments=[seg(SegmentId.DIRECTORY), seg(SegmentId.OUTPUT_STYLE)])
    input_data = make_input(output_style=OutputStyle("concise"))
    line = StatusLineGenerator(config).generate(collect_all_segments(config, input_data))
    assert "project" in line
    assert "concise" in line
    assert "\n" not in line