# gamemoded

`gamemoded` is a library of building blocks for a daemon that tunes a Linux
system while games are running. It has tools for the following:

- reading the system state: the CPU frequency governors, the ACPI platform
  profile, the split-lock mitigation setting and the RAPL energy counters;
- working out which CPU cores to park or pin games to;
- parsing `gamemode.ini` settings;
- running privileged helper programs.

It needs Linux with `/sys` and `/proc`, and Python 3.10 or newer. It has no
third-party runtime dependencies.

```
pip install .
pip install .[test]   # adds pytest
pytest
```

## Modules

### `gamemoded.cpulist`

This module parses and formats kernel CPU lists such as `0-3,5,7-9`.

```python
from gamemoded.cpulist import expand_cpulist, format_cpulist, iter_cpu_ranges

expand_cpulist("0-3,8")         # {0, 1, 2, 3, 8}
list(iter_cpu_ranges("0-3,8"))  # [(0, 3), (8, 8)]
format_cpulist([0, 1, 2, 5])    # "0-2,5"
```

- `parse_cpulist_entry(text)` returns `(first, last, remainder)`. It raises
  `CpuListError` (a `ValueError`) for an empty list, a bad entry or a
  backwards range.
- `iter_cpu_ranges` stops quietly at the first malformed entry.

### `gamemoded.settings`

This module parses config text and holds the values it sets.

- `parse_ini(text)` returns a list of `(section, name, value)` entries and the
  number of the first bad line, or `0` if every line was read.
- `ConfigValues` is a dataclass of every setting, starting from the defaults.
  Some of those defaults:
  - `reaper_frequency` is 5;
  - `script_timeout` is 10;
  - `igpu_power_threshold` is 0.3;
  - `inhibit_screensaver` and `disable_splitlock` are both 1.
- `ConfigValues.apply(section, name, value, protected=False)` stores one
  entry:
  - It returns `False`, and logs, when the entry is unknown or its value is
    invalid.
  - List settings (`whitelist`, `blacklist`, `start`, `end` and the
    supervisor lists) are appended to. Each holds at most 32 entries of
    under 256 characters.
  - An entry in `[gpu]` from a source that is not protected logs an error.
- Helpers:
  - `parse_long(name, value)` and `parse_float(name, value)` raise
    `ConfigValueError` for invalid or overflowing values.
  - `clamp(lower, upper, value)` limits a value to a range.
  - `string_list_contains(needle, haystack)` is a substring check.

```python
from gamemoded.settings import ConfigValues, parse_ini

entries, bad_line = parse_ini("[general]\nrenice=10\n[filter]\nwhitelist=mygame\n")
values = ConfigValues()
for section, name, value in entries:
    values.apply(section, name, value, protected=True)
values.renice      # 10
values.whitelist   # ["mygame"]
```

### `gamemoded.cpuinfo` and `gamemoded.cpuctl`

- `initialise_cpu(park_cores, pin_cores, sysfs_root="/sys")` returns a frozen
  `CPUInfo` with these fields:
  - `num_cpu`;
  - `mode`, which is `CpuMode.PARK` or `CpuMode.PIN`;
  - `online`;
  - `to_keep`.

  How it chooses the cores:
  - An explicit core list in the settings is used as given. This is done by
    `walk_string`.
  - Otherwise the kernel's P/E-core list is used, if the kernel provides one.
  - Failing that, it looks for cores with a larger L3 cache, then for cores
    with a higher maximum frequency.

  It returns `None` in these cases:
  - both features are off (`select_mode` returns `None`);
  - the feature cannot be applied;
  - fewer than four cores would be kept.
- `CPUInfo.parked_cores()` gives the online cores that are not kept.
- `park_cpu(info, libexec_dir)` and `unpark_cpu(info, libexec_dir)` run
  `pkexec <libexec_dir>/cpucorectl offline|online <list>`. They do nothing in
  pin mode.
- `apply_core_pinning(info, pid, be_silent=False, proc_root="/proc")` sets
  the affinity of every thread of `pid` to the kept cores.
  `undo_core_pinning(info, pid)` sets it back to all online cores. Both
  return the thread ids that were changed, and both do nothing in park mode.
- `reconfig_cpu(...)` unparks, then works the cores out again.

### `gamemoded.external`

`run_external_process(args, timeout=-1)` runs a program and returns its
standard output, keeping at most 1023 bytes.

- `-1` means the default timeout of five seconds.
- A non-zero exit raises `ExternalProcessError`, which carries `returncode`
  and `output`.
- If the timeout runs out, the child is killed and `ExternalProcessTimeout`
  is raised.

### System state readers

- `gamemoded.governors`:
  - `fetch_governors(pattern)` lists the distinct resolved
    `scaling_governor` files.
  - `get_gov_state(pattern)` returns the common governor. It returns
    `"malformed"` when CPUs disagree, and `""` when nothing could be read.
- `gamemoded.profile`:
  - `get_profile_state(path)` returns the platform profile.
  - It returns `"none"` when the file cannot be opened.
- `gamemoded.splitlock`:
  - `get_splitlock_state(path)` returns the `split_lock_mitigate` value.
  - It returns `-1` when the value cannot be read.
- `gamemoded.power`:
  - `get_cpu_energy_uj()` and `get_igpu_energy_uj()` read the RAPL `core`
    and `uncore` counters, wrapped to 32 bits.
  - Both raise `PowerReadError` (an `OSError`) on failure.
  - `read_file_in_dir(directory, name, limit)` reads one small sysfs file.

### `gamemoded.igpu`

`IgpuMonitor(cpu_reader, igpu_reader)` tracks energy between checks.

- `enable(threshold)` starts tracking. It does so only if the threshold is
  below 10000 and both counters can be read.
- `check(threshold)` returns one of three values:
  - `True` when the iGPU used more than `threshold` times the CPU's energy
    since the last reading;
  - `False` when it did not;
  - `None` when no decision can be made.
- `disable()` stops tracking.

### `gamemoded.log`

Messages go to standard output, and errors to standard error with an
`ERROR:` prefix.

- `use_syslog(name)` switches output to the system logger. `use_syslog(None)`
  switches back.
- `syslog_enabled()` reports which of the two is in use.
- `log_msg` and `log_error` write one message each.
- `log_once(key, message, error=False)` logs a message only the first time
  its key is seen.
- `hint_once(key, hint)` returns the hint the first time its key is seen, and
  an empty string after that.

## What this package does not do

This package is a set of parts, not a running daemon. It has:

- no command to start;
- no D-Bus service;
- no registry of game clients;
- no background thread that reaps exited games.

It does not load `gamemode.ini` from the standard locations, and it does not
watch those files for changes. To build settings, pass text to `parse_ini` and
feed the entries to `ConfigValues.apply`.

It reads the governor, platform profile and split-lock state, but it does not
change them. Core parking is the only privileged change it makes itself, and it
runs no user start or end scripts on its own.