# leptoskit

A library of building blocks for a web build tool. Such a tool compiles a
server binary and a browser bundle, assembles them into a site directory, and
keeps a development server running with live reload.

## Modules

- `leptoskit.paths`: path helpers.
  - `unbase` and `rebase` move a path from one root to another. They raise
    `PathError` when the path does not lie below that root.
  - `remove_nested` keeps only the outermost of a set of directories.
  - `append_str_to_filename` inserts a suffix before the extension, so
    `foo.bar` with `_bazz` becomes `foo_bazz.bar`.
  - `determine_pdb_filename` returns the `.pdb` file next to a binary when that
    file exists.
  - `resolve_home_dir` expands a leading `~`.
  - `ls_ascii` renders a directory tree as text.
- `leptoskit.util`: `os_arch()` returns the `(os, arch)` pair used to choose
  downloads. It raises `UnsupportedPlatformError` on an unsupported platform.
  `is_linux_musl_env()`, `pad_left_to`, `to_created_dir` and `paint` are small
  helpers, the last of which wraps text in an ANSI 256-colour sequence.
- `leptoskit.fsutil`: file-system operations that raise `FsError` with the
  paths involved in the message. They include `read`, `write`, `copy`,
  `rename`, `create_dir_all`, `remove_dir_all`, `rm_dir_content` and
  `copy_dir_all`.
- `leptoskit.compress`: `compress_dir_all` writes a `.gz` and a `.br` copy
  next to every file below a directory and skips files that are already
  compressed. `compress_static_files` is the async form, which runs the work in
  a thread.
- `leptoskit.logger`: `setup(verbose, logs)` installs a coloured, right-aligned
  label format on the root logger. `verbose` selects the level: 0 is info, 1 is
  debug, and more is trace. The filter passes errors and this package's own
  records, plus the dependency loggers picked with `Log.SERVER` (`hyper*`,
  `axum*`) or `Log.WASM` (`wasm*`, `walrus*`).
- `leptoskit.tools`: the `Tailwind` and `Sass` tool descriptions.
  - They give download URLs and executable names for each OS and architecture.
  - The version can be pinned with the environment variables
    `LEPTOS_TAILWIND_VERSION` and `LEPTOS_SASS_VERSION`.
  - At most once a day they ask the GitHub API for the latest release, keeping
    a marker file in the cache directory (`get_cache_dir()`).
  - `normalize_version` turns loose version strings such as `v3.3.3`, `5` or
    `0.2` into `semver.Version` objects.
- `leptoskit.exe`: `get_exe(tool, allow_downloads)` looks for a tool on `PATH`.
  If it is not there, the tool is fetched into the user cache directory. The
  download can be a plain binary, a zip archive or a tar.gz archive.
  `ExeCache` handles one cached tool version.
- `leptoskit.cargo`: `Metadata.from_json` and `Metadata.load_cleaned` read
  `cargo metadata` output; the latter runs `cargo`. With the result you can
  find the binary and cdylib targets of a package, and work out the `src`
  directories of local path dependencies, transitively.
- `leptoskit.sync`: `wait_interruptible` and `wait_piped_interruptible` wait
  for a child process but kill it when an interrupt receiver gets a value.
  They return a `CommandResult`. `wait_for_socket` polls a TCP port, up to 20
  times at half-second intervals.
- `leptoskit.signals`: `Broadcast` is a bounded, thread-safe broadcast channel.
  A receiver that falls behind gets `ChannelLagged`. The module also has:
  - module-level channels for server restarts and browser reloads
    (`send_full_reload`, `send_style_reload`, `send_view_patches`);
  - `Product`, `Outcome` and `ProductSet`, which record what a build step
    produced.
- `leptoskit.site`: `Site` copies (`updated`) or writes (`updated_with`) files
  into the site directory only when their content hash has changed. It also
  keeps track of changes to external files.
- `leptoskit.serve`: `ServerProcess(binary, envs, bin_args)` starts, restarts,
  waits for and kills a server binary with extra environment variables. It can
  be used as an async context manager. On Windows it runs a `_leptos` copy of
  the binary.
- `leptoskit.reload`: `BrowserMessage` builds the JSON messages for a
  live-reload client: `css(link)`, `view(data)` and `all()`. `css_link_for`
  turns a site path into a `/`-separated link.

## Example

```python
from leptoskit.paths import append_str_to_filename, remove_nested
from leptoskit.tools import normalize_version

append_str_to_filename("target/server", "_leptos")   # Path("target/server_leptos")
remove_nested(["src", "src/app", "style"])           # [Path("src"), Path("style")]
normalize_version("v3.3.3")                          # Version(3, 3, 3)
```

## What it does not do

This is a library only:

- It has no command-line entry point.
- It does not read project configuration.
- It does not compile anything.
- It does not watch the file system.
- It does not run the live-reload websocket server. `leptoskit.reload` only
  builds the messages such a server would send.

A build driver has to put these pieces together.