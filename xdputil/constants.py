"""Shared XDP constants, enums and the dispatcher configuration layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import ClassVar

XDP_BPFFS_ENVVAR = "LIBXDP_BPFFS"
XDP_BPFFS_MOUNT_ENVVAR = "LIBXDP_BPFFS_AUTOMOUNT"
XDP_OBJECT_ENVVAR = "LIBXDP_OBJECT_PATH"

XDP_METADATA_SECTION = "xdp_metadata"
XDP_DISPATCHER_VERSION = 2
# 'X' + 'D' + 'P' (88 + 68 + 80 = 236)
XDP_DISPATCHER_MAGIC = 236
# Highest bit in the chain_call_actions bitmap; keeps the call chain going
# when a slot has no program attached.
XDP_DISPATCHER_RETVAL = 31
MAX_DISPATCHER_ACTIONS = 10

NETDEV_FAMILY_NAME = "netdev"
NETDEV_FAMILY_VERSION = 1
NETDEV_MCGRP_MGMT = "mgmt"

NETDEV_A_DEV_IFINDEX = 1
NETDEV_A_DEV_PAD = 2
NETDEV_A_DEV_XDP_FEATURES = 3
NETDEV_A_DEV_MAX = NETDEV_A_DEV_XDP_FEATURES

NETDEV_CMD_DEV_GET = 1
NETDEV_CMD_DEV_ADD_NTF = 2
NETDEV_CMD_DEV_DEL_NTF = 3
NETDEV_CMD_DEV_CHANGE_NTF = 4
NETDEV_CMD_MAX = NETDEV_CMD_DEV_CHANGE_NTF


class XdpAttachMode(IntEnum):
    """How an XDP program is attached to an interface."""

    UNSPEC = 0
    NATIVE = 1
    SKB = 2
    HW = 3


class XdpAction(IntEnum):
    """Return codes of an XDP program."""

    ABORTED = 0
    DROP = 1
    PASS = 2
    TX = 3
    REDIRECT = 4


class NetdevXdpAct(IntFlag):
    """XDP feature bits a network device may advertise."""

    BASIC = 1
    REDIRECT = 2
    NDO_XMIT = 4
    XSK_ZEROCOPY = 8
    HW_OFFLOAD = 16
    RX_SG = 32
    NDO_XMIT_SG = 64

    MASK = 127


def _padded(values: list[int], name: str) -> list[int]:
    if len(values) > MAX_DISPATCHER_ACTIONS:
        raise ValueError(
            f"{name} has {len(values)} entries, at most "
            f"{MAX_DISPATCHER_ACTIONS} allowed"
        )
    for value in values:
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"{name} value {value} does not fit in 32 bits")
    return list(values) + [0] * (MAX_DISPATCHER_ACTIONS - len(values))


@dataclass
class DispatcherConfig:
    """Configuration block of the multi-program dispatcher."""

    magic: int = XDP_DISPATCHER_MAGIC
    dispatcher_version: int = XDP_DISPATCHER_VERSION
    num_progs_enabled: int = 0
    is_xdp_frags: int = 0
    chain_call_actions: list[int] = field(default_factory=list)
    run_prios: list[int] = field(default_factory=list)
    program_flags: list[int] = field(default_factory=list)

    _FORMAT: ClassVar[struct.Struct] = struct.Struct(
        f"=4B{MAX_DISPATCHER_ACTIONS}I{MAX_DISPATCHER_ACTIONS}I"
        f"{MAX_DISPATCHER_ACTIONS}I"
    )
    SIZE: ClassVar[int] = _FORMAT.size

    def pack(self) -> bytes:
        """Serialise into the in-memory layout used by the dispatcher."""
        header = (
            self.magic,
            self.dispatcher_version,
            self.num_progs_enabled,
            self.is_xdp_frags,
        )
        for value in header:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"header value {value} does not fit in a byte")
        return self._FORMAT.pack(
            *header,
            *_padded(self.chain_call_actions, "chain_call_actions"),
            *_padded(self.run_prios, "run_prios"),
            *_padded(self.program_flags, "program_flags"),
        )

    @classmethod
    def unpack(cls, data: bytes) -> "DispatcherConfig":
        """Build a configuration from its packed form."""
        if len(data) != cls.SIZE:
            raise ValueError(
                f"dispatcher config must be {cls.SIZE} bytes, got {len(data)}"
            )
        fields = cls._FORMAT.unpack(bytes(data))
        n = MAX_DISPATCHER_ACTIONS
        return cls(
            magic=fields[0],
            dispatcher_version=fields[1],
            num_progs_enabled=fields[2],
            is_xdp_frags=fields[3],
            chain_call_actions=list(fields[4:4 + n]),
            run_prios=list(fields[4 + n:4 + 2 * n]),
            program_flags=list(fields[4 + 2 * n:4 + 3 * n]),
        )