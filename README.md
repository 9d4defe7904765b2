# sgdktool

A Python library of helpers for developing Mega Drive / Genesis games with
SGDK. It reads the tool's `config.toml`, starts new projects from the SGDK
samples, builds them with `make`, installs the Gens and BlastEm emulators,
runs a ROM in one of them, reports on the SGDK documentation, and removes
everything again.

## Installation

```
pip install .
```

External programs used along the way: `make`; `compiledb` when present;
`wine` on non-Windows systems, both in the SGDK makefile name chosen
(`makefile_wine.gen`) and to run the Windows emulators.

## Configuration

`sgdktool.config.config_dir()` is the per-user configuration directory for
`sgdktool` (from `platformdirs`), and `config_path()` is `config.toml`
inside it. `load_config()` parses it with `tomlkit` and raises `ConfigError`
when it cannot be read or parsed; `save_config()` writes it back, creating
the directory.

The SGDK location is read from an `sgdk` table:

```toml
[sgdk]
path = "/home/me/SGDK"
version = "master"

[emulator]
gens_path = "/home/me/.config/sgdktool/gens/gens.exe"
```

`get_sgdk_config(doc)` returns `(path, version)` and
`get_emulator_path(doc, "gens")` the recorded executable, with `None` for
anything absent. `find_emulator_executable(config_dir, emulator)` looks for
`gens/gens.exe`, `gens/Gens_KMod_v0.7.3/gens.exe`, a
`blastem/blastem-win64*/blastem.exe` directory or `blastem/blastem.exe`.

All errors the package raises derive from `sgdktool.config.SgdkToolError`.

## Messages

`sgdktool.i18n` holds the user-facing messages in English and Japanese.
`init_locale()` chooses `ja` when `LANG` (or, without `LANG`, `LC_ALL`)
starts with `ja`, and `en` otherwise; `set_locale()` accepts only those two.
`t(key, **kwargs)` returns the message with `%{name}` placeholders filled in.

## Creating a project

```python
from sgdktool.project import create_project

create_project("mygame")
```

This lists every directory under SGDK's `sample` folder that contains a
`src` folder, asks for a number (Enter picks the first, `q` cancels and
returns `None`), copies the chosen sample to `mygame`, runs
`compiledb make` if `compiledb` is on `PATH`, and writes `.clangd`,
`.vscode/c_cpp_properties.json` and `.gitignore`. When the SGDK path holds
spaces, `temporary_sgdk_link()` provides a symlink without spaces in the
temporary directory, and the paths in `compile_commands.json` are put back
to the real location afterwards.

## Building

```python
from sgdktool.make import build_project

exit_code = build_project(["clean"])
```

`build_project` runs `make GDK=<sgdk> -f <sgdk>/<makefile> [extra...]` in
the current directory and returns make's exit status. `build_command()`
returns that command line without running it.

## Emulators

```python
from sgdktool.setup_emu import setup_emulator
from sgdktool.run import run_emulator

setup_emulator("blastem")
run_emulator(rom_path="out/rom.bin")
```

`setup_emulator("gens")` downloads Gens KMod v0.7.3 as a 7z archive and
unpacks it with `sgdktool.sevenzip.extract_7z` (which handles copy, LZMA,
LZMA2, delta and branch filters, and rejects encrypted archives).
`setup_emulator("blastem")` finds the first BlastEm Win64 nightly zip on the
nightlies page and unpacks it. Either way the executable found is stored
under `[emulator]` in `config.toml`.

`run_emulator(emulator=None, rom_path="out/rom.bin")` uses the named
emulator, or Gens if installed and BlastEm otherwise, runs it through
`wine` (directly on Windows) with the ROM's absolute path, and returns its
exit code.

## Documentation

`sgdktool.doc.show_sgdk_doc_status()` checks for `SGDK/doc/html` in the
configuration directory, opens its `index.html` with the platform's opener
(`open`, `start` or `xdg-open`), and otherwise says whether `doxygen` is
missing.

## Uninstalling

`sgdktool.uninstall.uninstall_sgdk()` asks for `y` or `yes`, then removes
the configured SGDK directory, the directories of the recorded emulator
executables and the whole configuration directory. It returns whether it
went ahead.

## What this package does not do

- It has no command-line program; everything is called from Python.
- It does not download or update SGDK, nor write the `sgdk` table into
  `config.toml`; set `path` (and `version`) there yourself.
- It does not generate the SGDK documentation or the wine wrapper scripts.
- It has no environment report listing the tools found on `PATH`.