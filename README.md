# ccline

`ccline` is a library that builds an ANSI-coloured status line for Claude Code
sessions. It reads the JSON document Claude Code passes to a status-line
command and renders it as a row of segments:

- **model** (`ccline.segments.model.ModelSegment`): a friendly model name
  such as `Opus 4.6` or `Sonnet 4 1M`
- **directory** (`DirectorySegment`): the last component of the working
  directory, Unix or Windows style, or `root`
- **git** (`GitSegment`): branch (or `detached`), a `✓`/`●`/`⚠` marker for
  clean/dirty/conflicts, `↑`/`↓` ahead/behind counts and, with
  `show_sha = true` in the segment options, the short SHA. It runs the `git`
  executable in the working directory.
- **context window** (`ContextWindowSegment`): share of the context limit and
  token count, e.g. `42.5% · 85k tokens`, read from the session transcript
- **cost** (`CostSegment`): total session cost, e.g. `$1.23`, or `$0` below a cent
- **session** (`SessionSegment`): elapsed time (`950ms`, `12s`, `3m5s`, `1h2m`)
  and lines added/removed
- **output style** (`OutputStyleSegment`): the active output style name
- **usage** (`UsageSegment`): five-hour and seven-day rate-limit bars with a
  heat-map gradient, shown on its own line below the others

Segments are rendered plainly or with Nerd Font icons, and are joined either
with a white separator or, when the separator is `\ue0b0`, with Powerline
arrows whose colours follow each segment's background.

## Usage

```python
import sys

from ccline.config import Config
from ccline.input import InputData
from ccline.statusline import StatusLineGenerator, collect_all_segments

config = Config.load_from_path("config.toml")
config.check()

input_data = InputData.from_json(sys.stdin.read())
segments = collect_all_segments(config, input_data)

print(StatusLineGenerator(config).generate(segments))
```

`Config.check()` raises `ConfigError` when no segments are configured or a
segment id appears twice. A configuration is written back with
`Config.save(path)` (parent directories are created) or rendered with
`Config.to_toml()`. Colours are tables of one of three forms: `{c16 = 3}`,
`{c256 = 208}` or `{r = 255, g = 128, b = 0}`.

`StatusLineGenerator.render_segment()` renders a single segment, and
`ccline.statusline.visible_width()` counts the characters of a string once
ANSI escapes are removed.

## Model names and context limits

`ccline.models.ModelConfig` resolves model ids in layers:

1. model entries (plain, case-insensitive substring match, first match wins),
2. built-in Claude families, with the version taken from the id
   (`claude-opus-4-6-20250901` → `Opus 4.6`, `claude-3-5-haiku-latest` → `Haiku 3.5`),
3. context modifiers such as `[1m]`, which append a suffix (` 1M`) and
   override the context limit (1,000,000).

Built-in entries cover GLM-4.5, Kimi K2 (Turbo) and Qwen Coder. Anything
unrecognised gets a 200,000-token limit. `ModelConfig.load(home)` creates a
commented `models.toml` template under `<home>/.claude/ccline/` if none exists,
then puts the `[[models]]` and `[[context_modifiers]]` of the first loadable
file (that one, or `./models.toml`) ahead of the built-ins.
`ModelSegment` and `ContextWindowSegment` accept a `model_config` argument;
without one they call `ModelConfig.load()`.

## Transcripts

`ccline.segments.context_window.parse_transcript_usage(path)` returns the
context tokens of the latest assistant turn in a JSONL transcript. A
transcript ending with a summary is followed to the message named by its
`leafUuid`; a missing transcript falls back to the most recently modified
`.jsonl` file in the same directory. Token counts are merged from
Anthropic-style and OpenAI-style usage fields by `RawUsage.normalize()` in
`ccline.input`.

## Usage bars

`UsageSegment` first uses the `rate_limits` the host sends on stdin. Only if
they are absent, and a `token_provider` callable was given, does it query the
`/api/oauth/usage` endpoint at the configured base URL. The segment options
`api_base_url`, `timeout`, `bar_width`, `bar_style` and `bar_colored` apply;
the base URL falls back to `env.ANTHROPIC_BASE_URL` in
`~/.claude/settings.json` and then to the `ANTHROPIC_BASE_URL` environment
variable, and `env.HTTPS_PROXY` / `env.HTTP_PROXY` in that file set a proxy.
Bars, countdowns and timestamp helpers live in
`ccline.segments.usage_common`.

## What it does not do

- There is no command-line program; the package is a library, and reading
  stdin and printing the line is left to the caller, as in the example above.
- There is no interactive configurator and no built-in themes. The
  configuration is loaded from and saved to a path you give; no default
  configuration or theme files are created.
- The `update` and `sub2_api` segment ids are accepted in a configuration, but
  `collect_all_segments` produces nothing for them.
- Stored OAuth credentials are not read; the usage endpoint is only called
  with a token from a `token_provider` you supply.