# xdputil

`xdputil` collects small userspace pieces that XDP tools share. It is a
plain Python library with no third-party dependencies.

## Modules

| Module | Purpose |
| --- | --- |
| `xdputil.constants` | `XdpAttachMode`, `XdpAction` and `NetdevXdpAct` enums, dispatcher and netdev constants, and `DispatcherConfig`, which packs and unpacks the dispatcher configuration record |
| `xdputil.jhash` | The Jenkins hash as the kernel computes it: `jhash`, `jhash2`, `jhash_1word`, `jhash_2words`, `jhash_3words`, `rol32` |
| `xdputil.log` | Levelled logging to stderr: `LogLevel`, `log_print`, `pr_warn`, `pr_info`, `pr_debug`, `lib_print`, `init_lib_logging`, `silence_lib_logging`, `get_log_level`, `set_log_level`, `increase_log_level` |
| `xdputil.xpcapng` | `PcapngDumper`, a small PcapNG writer for section header, interface description and enhanced packet blocks, with `EpbOptions` and `EpbFlags` |
| `xdputil.sample` | Sample-statistics masks and exit codes (`StatsMask`, `SampleCompat`, `ExitCode`) and the keying rules of the per-CPU counters: `xdp_get_err_key`, `in_set`, `exception_key`, `devmap_multi_key` |

## Examples

Hashing the way the kernel does it:

```python
from xdputil.jhash import jhash, jhash2, jhash_1word

h = jhash(b"some key", 0)
w = jhash_1word(0x0A000001, 0)
k = jhash2([1, 2, 3, 4], 0)
```

Packing a dispatcher configuration:

```python
from xdputil.constants import DispatcherConfig

cfg = DispatcherConfig(num_progs_enabled=1, chain_call_actions=[1 << 2],
                       run_prios=[10])
raw = cfg.pack()
assert DispatcherConfig.unpack(raw) == DispatcherConfig.unpack(raw)
```

`pack` raises `ValueError` when a list holds more than
`MAX_DISPATCHER_ACTIONS` entries or a value does not fit its field.

Writing a capture file:

```python
from xdputil.xpcapng import PcapngDumper, EpbOptions, EpbFlags

with PcapngDumper("capture.pcapng", user_application="demo") as dumper:
    ifid = dumper.add_interface(snap_len=262, name="eth0",
                                mac=bytes.fromhex("020000000001"))
    dumper.dump_enhanced_pkt(ifid, b"\x00" * 60, timestamp=1_000_000,
                             options=EpbOptions(flags=EpbFlags.INBOUND,
                                                queue=0))
```

Passing `"-"` as the file name writes to standard output, which `close()`
leaves open. Timestamps are in microseconds unless `add_interface` is
given another `ts_resolution`.

Adjusting how chatty logging is:

```python
from xdputil.log import LogLevel, set_log_level, increase_log_level, pr_debug

set_log_level(LogLevel.INFO)
increase_log_level()                 # now DEBUG
pr_debug("looking for pinned programs\n")
```

Messages passed to `lib_print` are demoted by one level and indented;
`silence_lib_logging()` drops them unless the level is `VERBOSE`, and
`init_lib_logging()` routes them through again.

Sample counter keys:

```python
import errno
from xdputil.sample import xdp_get_err_key, in_set, devmap_multi_key

xdp_get_err_key(-errno.ENETDOWN)     # 3
in_set([], 7)                        # True: an empty set matches everything
devmap_multi_key(2, 3)               # 0x0000000200000003
```

## What this package does not do

It has no command-line tool and talks to no kernel: it does not load,
attach, detach or pin XDP programs, read BPF maps, locate a bpffs mount,
parse command-line options, or collect and print live packet statistics.
It provides the constants, record layouts, hashing, logging, capture-file
writing and counter keying that such tools build on.

## Tests

The test suite uses pytest and lives in `tests/`:

```
pip install -e .[test]
pytest
```