"""Sample statistics masks, exit codes and the tracepoint keying rules."""

from __future__ import annotations

import errno
from collections.abc import Iterable
from enum import IntEnum, IntFlag

from .constants import XdpAction

MAX_MATCH = 32
SAMPLE_COMPAT_MAX = 1
_U64 = (1 << 64) - 1


class StatsMask(IntFlag):
    """Which statistics a sample program collects and shows."""

    REDIRECT_MAP_BIT = 1 << 0
    RX_CNT = 1 << 1
    REDIRECT_ERR_CNT = 1 << 2
    CPUMAP_ENQUEUE_CNT = 1 << 3
    CPUMAP_KTHREAD_CNT = 1 << 4
    EXCEPTION_CNT = 1 << 5
    DEVMAP_XMIT_CNT = 1 << 6
    REDIRECT_CNT = 1 << 7
    REDIRECT_MAP_CNT = REDIRECT_CNT | REDIRECT_MAP_BIT
    REDIRECT_ERR_MAP_CNT = REDIRECT_ERR_CNT | REDIRECT_MAP_BIT
    DEVMAP_XMIT_CNT_MULTI = 1 << 8
    SKIP_HEADING = 1 << 9
    RXQ_STATS = 1 << 10
    DROP_OK = 1 << 11


class SampleCompat(IntEnum):
    """Kernel compatibility variants a sample may need to pick between."""

    CPUMAP_KTHREAD = 0


class ExitCode(IntEnum):
    """Process exit codes of the sample tools."""

    OK = 0
    FAIL = 1
    FAIL_OPTION = 2
    FAIL_XDP = 3
    FAIL_BPF = 4
    FAIL_MEM = 5


_ERR_KEYS = {
    0: 0,
    -errno.EINVAL: 2,
    -errno.ENETDOWN: 3,
    -errno.EMSGSIZE: 4,
    -errno.EOPNOTSUPP: 5,
    -errno.ENOSPC: 6,
}


def xdp_get_err_key(err: int) -> int:
    """Counter slot for a redirect result: 0 is success, 1 other errors."""
    return _ERR_KEYS.get(err, 1)


def in_set(match: Iterable[int], value: int) -> bool:
    """True if ``value`` is in the zero-terminated ``match`` set.

    An empty set (no entries, or a zero first entry) matches everything.
    """
    entries = iter(match)
    first = next(entries, 0)
    if not first:
        return True
    if first == value:
        return True
    for entry in entries:
        if not entry:
            break
        if entry == value:
            return True
    return False


def exception_key(action: int) -> int:
    """Counter slot for an XDP exception; unknown actions share one slot."""
    if action > XdpAction.REDIRECT:
        return XdpAction.REDIRECT + 1
    return action


def devmap_multi_key(from_ifindex: int, to_ifindex: int) -> int:
    """64-bit key of a (source, destination) device pair."""
    return (((from_ifindex & _U64) << 32) | (to_ifindex & _U64)) & _U64