"""Minimal PcapNG writer for captured XDP packets."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from enum import IntFlag
from types import TracebackType
from typing import Optional, Union

PCAPNG_SECTION_BLOCK = 0x0A0D0D0A
PCAPNG_INTERFACE_BLOCK = 1
PCAPNG_PACKET_BLOCK = 2
PCAPNG_SIMPLE_PACKET_BLOCK = 3
PCAPNG_NAME_RESOLUTION_BLOCK = 4
PCAPNG_INTERFACE_STATS_BLOCK = 5
PCAPNG_ENHANCED_PACKET_BLOCK = 6

PCAPNG_BYTE_ORDER_MAGIC = 0x1A2B3C4D
PCAPNG_MAJOR_VERSION = 1
PCAPNG_MINOR_VERSION = 0
PCAPNG_SECTION_LENGTH_UNKNOWN = 0xFFFFFFFFFFFFFFFF

PCAPNG_OPT_END = 0
PCAPNG_OPT_COMMENT = 1

PCAPNG_OPT_SHB_HARDWARE = 2
PCAPNG_OPT_SHB_OS = 3
PCAPNG_OPT_SHB_USERAPPL = 4

PCAPNG_OPT_IDB_IF_NAME = 2
PCAPNG_OPT_IDB_IF_DESCRIPTION = 3
PCAPNG_OPT_IDB_IF_MAC_ADDR = 6
PCAPNG_OPT_IDB_IF_SPEED = 8
PCAPNG_OPT_IDB_IF_TSRESOL = 9
PCAPNG_OPT_IDB_IF_HARDWARE = 15

PCAPNG_OPT_EPB_FLAGS = 2
PCAPNG_OPT_EPB_HASH = 3
PCAPNG_OPT_EPB_DROPCOUNT = 4
PCAPNG_OPT_EPB_PACKETID = 5
PCAPNG_OPT_EPB_QUEUE = 6
PCAPNG_OPT_EPB_VERDICT = 7

PCAPNG_EPB_VERDICT_TYPE_HARDWARE = 0
PCAPNG_EPB_VERDICT_TYPE_EBPF_TC = 1
PCAPNG_EPB_VERDICT_TYPE_EBPF_XDP = 2

LINKTYPE_ETHERNET = 1
DEFAULT_TS_RESOLUTION = 6

_STDOUT_FD = 1

_OPTION_HEADER = struct.Struct("=HH")
_BLOCK_HEADER = struct.Struct("=II")
_U32 = struct.Struct("=I")
_U64 = struct.Struct("=Q")
_SHB_FIXED = struct.Struct("=IHHQ")
_IDB_FIXED = struct.Struct("=HHI")
_EPB_FIXED = struct.Struct("=IIIII")
_VERDICT = struct.Struct("=Bq")


class EpbFlags(IntFlag):
    """Direction flags of an enhanced packet block."""

    INBOUND = 0x1
    OUTBOUND = 0x2


@dataclass
class EpbOptions:
    """Optional fields of an enhanced packet block; unset ones are omitted."""

    flags: int = 0
    dropcount: int = 0
    packetid: Optional[int] = None
    queue: Optional[int] = None
    xdp_verdict: Optional[int] = None
    comment: Optional[str] = None


def _pad(length: int) -> bytes:
    return bytes(-length % 4)


def _option(code: int, data: bytes) -> bytes:
    if len(data) > 0xFFFF:
        raise ValueError(f"option {code} is too long ({len(data)} bytes)")
    return _OPTION_HEADER.pack(code, len(data)) + data + _pad(len(data))


def _end_option() -> bytes:
    return _OPTION_HEADER.pack(PCAPNG_OPT_END, 0)


def _block(block_type: int, body: bytes) -> bytes:
    length = _BLOCK_HEADER.size + len(body) + _U32.size
    if length > 0xFFFFFFFF:
        raise ValueError(f"block of {length} bytes is too large")
    return _BLOCK_HEADER.pack(block_type, length) + body + _U32.pack(length)


def _pack(fmt: struct.Struct, *values: int) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from None


def _text(value: str) -> bytes:
    return value.encode("utf-8")


class PcapngDumper:
    """Writes a PcapNG section to a file, or to standard output for ``"-"``."""

    def __init__(self, file: Union[str, os.PathLike],
                 comment: Optional[str] = None,
                 hardware: Optional[str] = None,
                 os_name: Optional[str] = None,
                 user_application: Optional[str] = None) -> None:
        if file is None:
            raise ValueError("a file name is required")
        self._interfaces = 0
        self._closed = False
        if os.fspath(file) == "-":
            self._fd = _STDOUT_FD
        else:
            self._fd = os.open(file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
                               0o600)
        try:
            self._write_shb(comment, hardware, os_name, user_application)
        except BaseException:
            self._release()
            raise

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def interface_count(self) -> int:
        return self._interfaces

    def _release(self) -> None:
        if not self._closed and self._fd != _STDOUT_FD:
            os.close(self._fd)
        self._closed = True

    def _write(self, data: bytes) -> None:
        if self._closed:
            raise ValueError("write to a closed pcapng dumper")
        view = memoryview(data)
        while view:
            written = os.write(self._fd, view)
            view = view[written:]

    def _write_shb(self, comment: Optional[str], hardware: Optional[str],
                   os_name: Optional[str],
                   user_application: Optional[str]) -> None:
        opts = bytearray()
        for code, value in ((PCAPNG_OPT_COMMENT, comment),
                            (PCAPNG_OPT_SHB_HARDWARE, hardware),
                            (PCAPNG_OPT_SHB_OS, os_name),
                            (PCAPNG_OPT_SHB_USERAPPL, user_application)):
            if value is not None:
                opts += _option(code, _text(value))
        opts += _end_option()
        body = _SHB_FIXED.pack(PCAPNG_BYTE_ORDER_MAGIC, PCAPNG_MAJOR_VERSION,
                               PCAPNG_MINOR_VERSION,
                               PCAPNG_SECTION_LENGTH_UNKNOWN) + bytes(opts)
        self._write(_block(PCAPNG_SECTION_BLOCK, body))

    def add_interface(self, snap_len: int, name: Optional[str] = None,
                      description: Optional[str] = None,
                      mac: Optional[bytes] = None, speed: int = 0,
                      ts_resolution: int = DEFAULT_TS_RESOLUTION,
                      hardware: Optional[str] = None) -> int:
        """Write an interface description block and return its interface id."""
        if not 0 <= snap_len <= 0xFFFF:
            raise ValueError(f"snap length {snap_len} does not fit in 16 bits")
        if not 0 <= ts_resolution <= 0xFF:
            raise ValueError(f"timestamp resolution {ts_resolution} out of range")
        opts = bytearray()
        if name is not None:
            opts += _option(PCAPNG_OPT_IDB_IF_NAME, _text(name))
        if description is not None:
            opts += _option(PCAPNG_OPT_IDB_IF_DESCRIPTION, _text(description))
        if mac is not None:
            mac = bytes(mac)
            if len(mac) != 6:
                raise ValueError(f"MAC address must be 6 bytes, got {len(mac)}")
            opts += _option(PCAPNG_OPT_IDB_IF_MAC_ADDR, mac)
        if speed:
            opts += _option(PCAPNG_OPT_IDB_IF_SPEED, _pack(_U64, speed))
        if ts_resolution not in (0, DEFAULT_TS_RESOLUTION):
            opts += _option(PCAPNG_OPT_IDB_IF_TSRESOL, bytes([ts_resolution]))
        if hardware is not None:
            opts += _option(PCAPNG_OPT_IDB_IF_HARDWARE, _text(hardware))
        opts += _end_option()

        body = _IDB_FIXED.pack(LINKTYPE_ETHERNET, 0, snap_len) + bytes(opts)
        self._write(_block(PCAPNG_INTERFACE_BLOCK, body))
        ifid = self._interfaces
        self._interfaces += 1
        return ifid

    def dump_enhanced_pkt(self, ifid: int, pkt: bytes,
                          length: Optional[int] = None,
                          caplen: Optional[int] = None, timestamp: int = 0,
                          options: Optional[EpbOptions] = None) -> None:
        """Write one packet as an enhanced packet block.

        ``length`` is the original length on the wire and ``caplen`` the
        number of bytes of ``pkt`` stored; both default to ``len(pkt)``.
        """
        data = bytes(pkt)
        if caplen is None:
            caplen = len(data)
        if length is None:
            length = len(data)
        if caplen < 0 or caplen > len(data):
            raise ValueError(
                f"capture length {caplen} exceeds packet of {len(data)} bytes")
        opts_in = options or EpbOptions()

        fixed = _pack(_EPB_FIXED, ifid, timestamp >> 32,
                      timestamp & 0xFFFFFFFF, caplen, length)
        if not 0 <= timestamp <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"timestamp {timestamp} does not fit in 64 bits")

        opts = bytearray()
        if opts_in.comment is not None:
            opts += _option(PCAPNG_OPT_COMMENT, _text(opts_in.comment))
        if opts_in.flags:
            opts += _option(PCAPNG_OPT_EPB_FLAGS, _pack(_U32, int(opts_in.flags)))
        if opts_in.dropcount:
            opts += _option(PCAPNG_OPT_EPB_DROPCOUNT,
                            _pack(_U64, opts_in.dropcount))
        if opts_in.packetid is not None:
            opts += _option(PCAPNG_OPT_EPB_PACKETID,
                            _pack(_U64, opts_in.packetid))
        if opts_in.queue is not None:
            opts += _option(PCAPNG_OPT_EPB_QUEUE, _pack(_U32, opts_in.queue))
        if opts_in.xdp_verdict is not None:
            opts += _option(PCAPNG_OPT_EPB_VERDICT,
                            _pack(_VERDICT, PCAPNG_EPB_VERDICT_TYPE_EBPF_XDP,
                                  opts_in.xdp_verdict))
        opts += _end_option()

        body = fixed + data[:caplen] + _pad(caplen) + bytes(opts)
        self._write(_block(PCAPNG_ENHANCED_PACKET_BLOCK, body))

    def flush(self) -> None:
        """Force written blocks to stable storage."""
        if self._closed:
            raise ValueError("flush of a closed pcapng dumper")
        os.fsync(self._fd)

    def close(self) -> None:
        """Close the output file; standard output is left open."""
        self._release()

    def __enter__(self) -> "PcapngDumper":
        return self

    def __exit__(self, exc_type: Optional[type],
                 exc: Optional[BaseException],
                 tb: Optional[TracebackType]) -> None:
        self.close()