# wracgain

`wracgain` has two sides:

- **Build tasks** for the WRAC Gain plugin. They build the GUI, the plugin
  library, the CLAP bundle and the VST3 / AU / standalone wrappers. They then
  install, uninstall and validate the results. The work is done by external
  tools run as subprocesses: `npm`, `cargo`, `cmake`, `install_name_tool`,
  `codesign`, `auval` and the VST3 validator. Each command line is printed
  (`$ ...`) before it runs. The one exception is the best-effort restart of
  `AudioComponentRegistrar` before `auval`.
- **The gain effect itself**, as a Python library. It holds parameters, shared
  state, the audio processor, the plugin core with state save/restore, a debug
  file logger, and a helper that zips the built frontend.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Command line

Run the command from the root of the plugin repository. It uses the current
directory as that root.

```
wracgain build [--release] [--clean] [--target=clap,vst3,au,standalone] [--install]
wracgain install [--release] [--scope=user|system] [--target=clap,vst3,au]
wracgain uninstall [--target=clap,vst3,au] [--dry-run]
wracgain validate [--release] [--target=vst3,au]
wracgain clean
```

Targets can be given comma-separated (`--target=vst3,au`) or space-separated.
A repeated target is dropped, and the order of first appearance is kept. A
target the current OS does not support is an error.

If you leave out `--target`, you get every target the current OS supports:

| Command   | macOS                      | Windows                | Linux |
|-----------|----------------------------|------------------------|-------|
| build     | clap, vst3, au, standalone | clap, vst3, standalone | clap  |
| install   | clap, vst3, au             | clap, vst3             | clap  |
| uninstall | clap, vst3, au             | clap, vst3             | clap  |
| validate  | vst3, au                   | vst3                   | none  |

The repository paths:

- The target directory is `CARGO_TARGET_DIR` if set, and `<repo>/target`
  otherwise.
- The wrapper project is `CLAP_WRAPPER_DIR` if set, and
  `<repo>/clap_wrapper_builder` otherwise.
- The frontend is `<repo>/src-gui`.
- The plugin manifest is `<repo>/src-plugin/Cargo.toml`. The plugin version is
  read from its `[package]` section.

Artifacts go under `<target dir>/wrac/`:

- plugins: `wrac/plugins/<debug|release>/`
- standalone app: `wrac/standalone/<debug|release>/`
- wrapper builds: `wrac/cmake/<purpose>-<debug|release>/`

What each command does:

- **`build`** checks that the wrapper submodules are checked out, but only
  when it builds wrapper or standalone targets. It runs `npm install` and
  `npm run build` in `src-gui`, then `cargo build`. Where needed it also
  packages the CLAP and runs CMake for the wrappers. On macOS it ad-hoc signs
  the bundles.
  - `--clean` removes `wrac/` first.
  - `--install` installs the plugin formats it built into the user scope. The
    standalone app is skipped.
- **`install`** copies artifacts that were built earlier. `--scope` is `user`
  by default. An existing installed copy is removed before the new copy is
  made.
- **`uninstall`** removes both the user-local copy and the system-wide copy.
  `--dry-run` only lists what would be removed.
- **`validate`** works per format:
  - VST3 runs the VST3 validator. The validator is built from
    `<wrapper dir>/vst3sdk` the first time it is needed.
  - AU refuses to run if `/Library/Audio/Plug-Ins/Components` already holds a
    copy. Otherwise it installs the built AU to the user folder and runs
    `auval -v aufx WtGn YrCo`.
- **`clean`** removes `<target dir>/wrac`.

On failure the command prints `Error: ...` to stderr and exits with status 1.

## Library

```python
from wracgain.plugin import GainPlugin
from wracgain.parameters import parameter_text_value, gain_db_text

plugin = GainPlugin()
plugin.apply_parameter_value(1, 0.25)          # host value 0.25 -> gain 0.5
print(plugin.parameter_value_to_text(1, 0.25)) # "-6.0 dB"
data = plugin.save_state()                     # b'{"gain":0.5,"bypass":false}'
plugin.restore_state(data)

print(parameter_text_value(1, "-6 dB"))        # linear gain, clamped to 0.0..2.0
print(gain_db_text(0.0))                       # "-inf dB"
```

### Parameters (`wracgain.parameters`)

| Id | Name   | Plain value range            | Default              | Text     |
|----|--------|------------------------------|----------------------|----------|
| 1  | Gain   | linear amplitude, 0.0 to 2.0 | 1.0 (host value 0.5) | dB       |
| 9  | Bypass | off or on                    | off                  | On / Off |

- Host values for gain are normalised to 0..1.
- Bypass text accepts `on`/`1`/`true` and `off`/`0`/`false`, in any case.
- An unknown parameter id, or text that does not parse, raises
  `InvalidParameterError`.

### Shared state (`wracgain.state`)

`SharedState` holds the current gain and bypass behind a lock. Any thread can
read and write it. `set_parameter_value` clamps the value it is given and
returns what it stored. For an unknown id it returns `None`.

### Audio processing (`wracgain.audio`)

`GainAudioProcessor.process(channels, frames_count, events)` scales mutable
sample sequences in place. These can be lists or `array.array`.

- The block is split at each event's time, so automation is sample-accurate.
- Event times are clamped to the block length.
- Only `ParamValueEvent`s for gain and bypass change anything. Other events,
  such as `NoteEvent`, only split the block.
- Bypass gives unity gain.
- It returns `ProcessStatus.CONTINUE_IF_NOT_QUIET`.

### Plugin core (`wracgain.plugin`)

`GainPlugin` offers:

- one main input port and one main output port, stereo by default;
- port configuration requests;
- parameter queries and text conversion;
- JSON state save/restore.

`resolve_audio_channel_count` accepts only symmetric main-port setups with 1
or 2 channels. `apply_audio_port_configuration` raises `InvalidStateError` for
anything else. `restore_state` also raises it for bytes that are not valid
saved state. A callable passed as `parameter_listener` is told the gain after
each restore.

### Debug logging (`wracgain.debug_logging`)

`init_debug_logging_once(app_name)` installs a `DebugFileHandler` on the root
logger, once per process.

- Each record goes to stderr and to a log file as a single line.
- The file is `<cwd>/.log/<app name> Latest.log` unless `log_file` is given.
- The file is truncated at the start of each session.
- The level comes from the `WRACGAIN_LOG` environment variable, e.g. `info` or
  `mod=warn`, and defaults to debug.

### Frontend archive (`wracgain.frontend_zip`)

`create_zip(src_dir, out_zip)` writes a deflated, reproducible zip of a
directory tree. `bundle_frontend(manifest_dir, out_dir, profile)` works as
follows:

- For the `release` profile it zips `<manifest_dir>/../src-gui/dist` into
  `<out_dir>/wrac_gain_plugin_gui.zip`.
- For any other profile it does nothing and returns `None`.
- If the dist directory is missing it raises `FileNotFoundError`.

## What this package does not do

This package cannot be loaded into a host as a plugin. It has no plugin ABI
entry point. It has no WebView editor window, and no command bridge between
such a GUI and the state. The gain core here is a Python library.

The `build` command does not produce plugin binaries by itself. It drives
`npm`, `cargo` and `cmake` over a repository that holds the plugin, frontend
and wrapper sources.