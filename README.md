# sxlmaps

A terminal application for browsing and installing Skater XL custom maps.

On start it downloads the current map catalogue and hides console-only entries (any map whose
name contains "ps4", "playstation" or "xbox", in any case). You can then sort the list and
install a map into your game's `Maps` directory with one key press.

## Installation

```
pip install .
```

## Usage

```
sxlmaps [--log-file PATH]
```

The first time you run it, you are asked for your Skater XL `Maps` directory. On Linux with
Steam/Proton it is typically:

```
~/.steam/steam/steamapps/compatdata/962730/pfx/drive_c/users/steamuser/Documents/SkaterXL/Maps/
```

The directory must already exist. It is saved to
`~/.config/skaterxl-map-manager/skaterxl_cli_config.json` and used on later runs. If that file
cannot be read, an error is printed and the program carries on with an empty configuration.

Debug messages are written to `debug.log` in the current directory, or to the file given with
`--log-file`.

### Keys

In the directory prompt, type the path and press Enter; Left, Right, Home, End and Backspace
edit it.

In the map list:

| Key                    | Action                                            |
|------------------------|---------------------------------------------------|
| Up / Down, k / j       | Move the selection                                |
| Left / Right, h / l    | Previous / next page (also PgUp / PgDn)           |
| Home, g / End, G       | First / last map                                  |
| Enter                  | Install the selected map                          |
| 1                      | Cycle the sort field: recent → popularity → name  |
| 2                      | Swap between ascending and descending order       |

Anywhere, `q` or Ctrl+C quits; on the error screen Esc quits too. The list starts sorted by
most recently added. Cycling to popularity sorts by downloads, descending; cycling to name sorts
alphabetically (case-insensitive), ascending.

When a map is installed, its archive is downloaded to a temporary directory and extracted into
a folder named after the map (with `/ \ : * ? " < > |` replaced by `_`) inside your `Maps`
directory. If the archive holds exactly one top-level folder and nothing else, the contents of
that folder are placed there directly. Archive entries that would land outside the extraction
directory are refused.

## Using it as a library

```python
from sxlmaps.api import fetch_maps
from sxlmaps.model import filter_maps, sort_maps, SortField
from sxlmaps.installer import install_map

maps = sort_maps(filter_maps(fetch_maps()), SortField.POPULARITY, ascending=False)
destination = install_map(maps[0], "/path/to/SkaterXL/Maps")
```

- `sxlmaps.api`: the `Map` data classes, `parse_response`, `parse_map` and `fetch_maps`, which
  raises `FetchError` on network, status or decoding failures.
- `sxlmaps.installer`: `install_map`, which returns the directory the map went into and raises
  `InstallError` on failure, plus the helpers `download_file`, `unzip`, `sanitize_filename`,
  `single_root_folder`, `copy_file`, `copy_dir` and `move_dir_contents`.
- `sxlmaps.config`: `Config`, `config_path`, `load_config(path=None)` and
  `save_config(config, path=None)`, which raise `ConfigError`.
- `sxlmaps.model`: the interface state `Model`, with `update(msg)` and `view()`, and its message
  types.
- `sxlmaps.styles`: the colour palette and the `Style` class used to render text.

## What it does not do

It does not search or filter the list by text, show map images or descriptions beyond the list
entry, uninstall or update installed maps, or show download progress while installing.

## Running the tests

```
pip install .[test]
pytest
```