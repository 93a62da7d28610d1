# zapcore

Low-level building blocks for fast, structured, leveled logging. The
package has no third-party dependencies.

## What is in it

- `zapcore.level` – `Level`, an `int` subclass with `Level.DEBUG`,
  `Level.INFO`, `Level.WARN`, `Level.ERROR`, `Level.DPANIC`, `Level.PANIC`
  and `Level.FATAL`; `parse_level` (case-insensitive, the empty string means
  info, unknown names raise `ValueError`); `color_string` and
  `capital_color_string` for terminal-coloured level names; the
  `LevelEnabler` protocol.
- `zapcore.entry` – `Entry`, `EntryCaller` (`full_path`, `trimmed_path`),
  `new_entry_caller`, the abstract `Core` base class, `CheckedEntry` with
  `add_core` and `should`, and `CheckWriteAction`. After writing, a checked
  entry raises `PanicError`, `SystemExit(1)` or `TaskExit` when its action
  asks for it.
- `zapcore.field` – `Field` and `FieldType`: typed key/value pairs that add
  themselves to any object encoder with `add_to`, and compare with `equals`.
  Failures of marshalers, stringers and errors are recorded under
  `<key>Error` instead of being raised.
- `zapcore.error_encoding` – `encode_error`, plus `MultiError`, `combine`
  and `append_error` for reporting several errors together. Errors with an
  `errors()` method get a `<key>Causes` array; errors with a `verbose()`
  method get a `<key>Verbose` string.
- `zapcore.marshaler` – the `ObjectMarshaler` and `ArrayMarshaler`
  protocols and the `ObjectMarshalerFunc` / `ArrayMarshalerFunc` adapters.
- `zapcore.encoder` – the encoder protocols, `EncoderConfig`,
  `encoder_config_from_dict` (camelCase keys, as decoded from JSON or YAML),
  and the level, time, duration, caller and name encoders, chosen by name
  with `level_encoder_from_text`, `time_encoder_from_text` (or
  `time_encoder_from_config`, which also takes `{"layout": ...}`),
  `duration_encoder_from_text`, `caller_encoder_from_text` and
  `name_encoder_from_text`. `format_time` formats a `datetime` with a
  reference-time layout such as `"2006-01-02T15:04:05Z07:00"`;
  `format_duration` renders nanoseconds as text like `"1m0s"`.
- `zapcore.json_encoder` – `JSONEncoder` / `new_json_encoder`, which turn an
  entry, its fields and accumulated context into one JSON line (a `str`).
- `zapcore.memory_encoder` – `MapObjectEncoder`, which records fields in a
  plain `dict`; handy in tests.
- Core wrappers: `zapcore.tee.new_tee`, `zapcore.sampler.new_sampler` /
  `new_sampler_with_options` (with `sampler_hook` and `SamplingDecision`),
  `zapcore.hook.register_hooks` and
  `zapcore.increase_level.new_increase_level_core` (raises `ValueError` if
  the new level would lower the core's level).

Durations are nanoseconds (an `int`) or a `timedelta`; naive datetimes are
treated as UTC.

## Installation

```
pip install zapcore
```

## Encoding an entry as JSON

```python
from datetime import datetime, timezone

from zapcore.encoder import EncoderConfig, epoch_time_encoder, lowercase_level_encoder
from zapcore.encoder import seconds_duration_encoder, short_caller_encoder
from zapcore.entry import Entry
from zapcore.json_encoder import new_json_encoder
from zapcore.level import Level

config = EncoderConfig(
    message_key="msg",
    level_key="level",
    time_key="ts",
    encode_level=lowercase_level_encoder,
    encode_time=epoch_time_encoder,
    encode_duration=seconds_duration_encoder,
    encode_caller=short_caller_encoder,
)
enc = new_json_encoder(config)
enc.add_string("service", "checkout")

line = enc.encode_entry(
    Entry(level=Level.INFO, time=datetime(1970, 1, 1, tzinfo=timezone.utc), message="hello"),
    [],
)
print(line, end="")
# {"level":"info","ts":0,"msg":"hello","service":"checkout"}
```

## Levels

```python
from zapcore.level import Level, parse_level

assert parse_level("WaRn") == Level.WARN
assert Level.WARN.enabled(Level.ERROR)
assert str(Level.DPANIC) == "dpanic"
assert Level.INFO.capital_string() == "INFO"
```

## Writing a core and combining cores

A core is a subclass of `zapcore.entry.Core`. This one keeps encoded lines
in a list:

```python
from datetime import timedelta

from zapcore.encoder import EncoderConfig, lowercase_level_encoder
from zapcore.entry import Core, Entry, add_core
from zapcore.field import Field, FieldType, add_fields
from zapcore.hook import register_hooks
from zapcore.json_encoder import new_json_encoder
from zapcore.level import Level
from zapcore.sampler import new_sampler_with_options
from zapcore.tee import new_tee


class ListCore(Core):
    def __init__(self, level, encoder, lines):
        self.level, self.encoder, self.lines = level, encoder, lines

    def enabled(self, lvl):
        return self.level.enabled(lvl)

    def with_fields(self, fields):
        clone = self.encoder.clone()
        add_fields(clone, fields)
        return ListCore(self.level, clone, self.lines)

    def check(self, ent, ce):
        return add_core(ce, ent, self) if self.enabled(ent.level) else ce

    def write(self, ent, fields):
        self.lines.append(self.encoder.encode_entry(ent, fields))

    def sync(self):
        pass


config = EncoderConfig(message_key="msg", level_key="level", encode_level=lowercase_level_encoder)
debug_lines, warn_lines = [], []
core = new_tee(
    ListCore(Level.DEBUG, new_json_encoder(config), debug_lines),
    ListCore(Level.WARN, new_json_encoder(config), warn_lines),
)
core = new_sampler_with_options(core, timedelta(seconds=1), 100, 100)
core = register_hooks(core, lambda entry: None)

ce = core.check(Entry(level=Level.WARN, message="disk low"), None)
if ce is not None:
    ce.write(Field(key="free", type=FieldType.INT64, integer=42))
# both lists now hold '{"level":"warn","msg":"disk low","free":42}\n'
```

## What the package does not do

It provides the pieces a logger is built from, not a logger. There is no
high-level logging front end with `info()`/`warn()` methods, no
ready-made core that writes to files, streams or other sinks, no console
(plain-text) encoder, and no command-line tool. Configuration is read only
from an already decoded mapping via `encoder_config_from_dict`; the
package does not load configuration files itself.

## Running the tests

```
pip install -e ".[test]"
pytest
```