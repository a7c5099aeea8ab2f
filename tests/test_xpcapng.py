import struct

import pytest

from xdputil.xpcapng import (
    PCAPNG_ENHANCED_PACKET_BLOCK,
    PCAPNG_INTERFACE_BLOCK,
    PCAPNG_OPT_COMMENT,
    PCAPNG_OPT_EPB_DROPCOUNT,
    PCAPNG_OPT_EPB_FLAGS,
    PCAPNG_OPT_EPB_PACKETID,
    PCAPNG_OPT_EPB_QUEUE,
    PCAPNG_OPT_EPB_VERDICT,
    PCAPNG_OPT_IDB_IF_DESCRIPTION,
    PCAPNG_OPT_IDB_IF_HARDWARE,
    PCAPNG_OPT_IDB_IF_MAC_ADDR,
    PCAPNG_OPT_IDB_IF_NAME,
    PCAPNG_OPT_IDB_IF_SPEED,
    PCAPNG_OPT_IDB_IF_TSRESOL,
    PCAPNG_OPT_SHB_HARDWARE,
    PCAPNG_OPT_SHB_OS,
    PCAPNG_OPT_SHB_USERAPPL,
    PCAPNG_SECTION_BLOCK,
    EpbFlags,
    EpbOptions,
    PcapngDumper,
)


def _blocks(data):
    result = []
    pos = 0
    while pos < len(data):
        btype, length = struct.unpack_from("=II", data, pos)
        assert length % 4 == 0
        (trailer,) = struct.unpack_from("=I", data, pos + length - 4)
        assert trailer == length
        result.append((btype, data[pos + 8:pos + length - 4]))
        pos += length
    assert pos == len(data)
    return result


def _options(body):
    result = []
    pos = 0
    while True:
        code, length = struct.unpack_from("=HH", body, pos)
        pos += 4
        if code == 0:
            assert length == 0
            assert pos == len(body)
            return result
        result.append((code, body[pos:pos + length]))
        pos += length + (-length % 4)


def _read(path):
    return path.read_bytes()


def test_section_header_fixed_fields(tmp_path):
    path = tmp_path / "cap.pcapng"
    PcapngDumper(str(path)).close()
    data = _read(path)
    blocks = _blocks(data)
    assert len(blocks) == 1
    btype, body = blocks[0]
    assert btype == 0x0A0D0D0A
    magic, major, minor, seclen = struct.unpack_from("=IHHQ", body, 0)
    assert magic == 0x1A2B3C4D
    assert (major, minor) == (1, 0)
    assert seclen == 0xFFFFFFFFFFFFFFFF
    assert _options(body[16:]) == []


def test_section_header_options_round_trip(tmp_path):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path), comment="hello", hardware="box",
                      os_name="Linux", user_application="dumper"):
        pass
    (btype, body), = _blocks(_read(path))
    assert btype == PCAPNG_SECTION_BLOCK
    assert _options(body[16:]) == [
        (PCAPNG_OPT_COMMENT, b"hello"),
        (PCAPNG_OPT_SHB_HARDWARE, b"box"),
        (PCAPNG_OPT_SHB_OS, b"Linux"),
        (PCAPNG_OPT_SHB_USERAPPL, b"dumper"),
    ]


def test_interfaces_numbered_sequentially(tmp_path):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path)) as pd:
        ids = [pd.add_interface(1500, name=f"eth{n}") for n in range(3)]
        assert pd.interface_count == 3
    assert ids == [0, 1, 2]
    blocks = _blocks(_read(path))
    assert [b[0] for b in blocks[1:]] == [PCAPNG_INTERFACE_BLOCK] * 3


def test_interface_block_contents(tmp_path):
    path = tmp_path / "cap.pcapng"
    mac = bytes.fromhex("020000000001")
    with PcapngDumper(str(path)) as pd:
        pd.add_interface(256, name="lo", description="loopback", mac=mac,
                         speed=10_000_000_000, ts_resolution=9,
                         hardware="nic")
    _, (btype, body) = _blocks(_read(path))
    assert btype == 1
    link, reserved, snap = struct.unpack_from("=HHI", body, 0)
    assert (link, reserved, snap) == (1, 0, 256)
    opts = _options(body[8:])
    assert [code for code, _ in opts] == [
        PCAPNG_OPT_IDB_IF_NAME,
        PCAPNG_OPT_IDB_IF_DESCRIPTION,
        PCAPNG_OPT_IDB_IF_MAC_ADDR,
        PCAPNG_OPT_IDB_IF_SPEED,
        PCAPNG_OPT_IDB_IF_TSRESOL,
        PCAPNG_OPT_IDB_IF_HARDWARE,
    ]
    values = dict(opts)
    assert values[PCAPNG_OPT_IDB_IF_NAME] == b"lo"
    assert values[PCAPNG_OPT_IDB_IF_MAC_ADDR] == mac
    assert struct.unpack("=Q", values[PCAPNG_OPT_IDB_IF_SPEED])[0] == 10_000_000_000
    assert values[PCAPNG_OPT_IDB_IF_TSRESOL] == bytes([9])


@pytest.mark.parametrize("resolution", [0, 6])
def test_default_ts_resolution_omitted(tmp_path, resolution):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path)) as pd:
        pd.add_interface(64, ts_resolution=resolution)
    _, (_, body) = _blocks(_read(path))
    assert _options(body[8:]) == []


def test_add_interface_rejects_bad_mac(tmp_path):
    with PcapngDumper(str(tmp_path / "cap.pcapng")) as pd:
        with pytest.raises(ValueError):
            pd.add_interface(64, mac=b"\x01\x02")
        assert pd.interface_count == 0


@pytest.mark.parametrize("pkt", [b"", b"a", b"abcd", b"abcdefg"])
def test_packet_round_trip(tmp_path, pkt):
    path = tmp_path / "cap.pcapng"
    timestamp = (7 << 32) | 12345
    with PcapngDumper(str(path)) as pd:
        ifid = pd.add_interface(1500)
        pd.dump_enhanced_pkt(ifid, pkt, timestamp=timestamp)
    blocks = _blocks(_read(path))
    btype, body = blocks[-1]
    assert btype == PCAPNG_ENHANCED_PACKET_BLOCK
    iface, hi, lo, caplen, origlen = struct.unpack_from("=IIIII", body, 0)
    assert iface == ifid
    assert (hi << 32) | lo == timestamp
    assert caplen == origlen == len(pkt)
    assert body[20:20 + caplen] == pkt
    padded = caplen + (-caplen % 4)
    assert body[20 + caplen:20 + padded] == bytes(padded - caplen)
    assert _options(body[20 + padded:]) == []


def test_truncated_capture(tmp_path):
    path = tmp_path / "cap.pcapng"
    pkt = bytes(range(40))
    with PcapngDumper(str(path)) as pd:
        pd.dump_enhanced_pkt(0, pkt, length=len(pkt), caplen=10)
    _, (_, body) = _blocks(_read(path))
    _, _, _, caplen, origlen = struct.unpack_from("=IIIII", body, 0)
    assert (caplen, origlen) == (10, len(pkt))
    assert body[20:30] == pkt[:10]


def test_packet_options_order_and_values(tmp_path):
    path = tmp_path / "cap.pcapng"
    opts = EpbOptions(flags=EpbFlags.INBOUND, dropcount=3, packetid=99,
                      queue=5, xdp_verdict=-1, comment="note")
    with PcapngDumper(str(path)) as pd:
        pd.dump_enhanced_pkt(0, b"abcd", options=opts)
    _, (_, body) = _blocks(_read(path))
    parsed = _options(body[24:])
    assert [code for code, _ in parsed] == [
        PCAPNG_OPT_COMMENT,
        PCAPNG_OPT_EPB_FLAGS,
        PCAPNG_OPT_EPB_DROPCOUNT,
        PCAPNG_OPT_EPB_PACKETID,
        PCAPNG_OPT_EPB_QUEUE,
        PCAPNG_OPT_EPB_VERDICT,
    ]
    values = dict(parsed)
    assert values[PCAPNG_OPT_COMMENT] == b"note"
    assert struct.unpack("=I", values[PCAPNG_OPT_EPB_FLAGS])[0] == EpbFlags.INBOUND
    assert struct.unpack("=Q", values[PCAPNG_OPT_EPB_DROPCOUNT])[0] == 3
    assert struct.unpack("=Q", values[PCAPNG_OPT_EPB_PACKETID])[0] == 99
    assert struct.unpack("=I", values[PCAPNG_OPT_EPB_QUEUE])[0] == 5
    vtype, verdict = struct.unpack("=Bq", values[PCAPNG_OPT_EPB_VERDICT])
    assert (vtype, verdict) == (2, -1)


def test_zero_packetid_is_still_written(tmp_path):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path)) as pd:
        pd.dump_enhanced_pkt(0, b"abcd", options=EpbOptions(packetid=0))
    _, (_, body) = _blocks(_read(path))
    assert _options(body[24:]) == [(PCAPNG_OPT_EPB_PACKETID, bytes(8))]


def test_caplen_longer_than_packet_rejected(tmp_path):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path)) as pd:
        with pytest.raises(ValueError):
            pd.dump_enhanced_pkt(0, b"abc", caplen=4)
    assert len(_blocks(_read(path))) == 1


def test_write_after_close_raises(tmp_path):
    pd = PcapngDumper(str(tmp_path / "cap.pcapng"))
    pd.close()
    assert pd.closed
    with pytest.raises(ValueError):
        pd.dump_enhanced_pkt(0, b"abcd")
    with pytest.raises(ValueError):
        pd.flush()


def test_flush_keeps_contents(tmp_path):
    path = tmp_path / "cap.pcapng"
    with PcapngDumper(str(path)) as pd:
        pd.add_interface(100)
        pd.flush()
        assert [b[0] for b in _blocks(_read(path))] == [
            PCAPNG_SECTION_BLOCK, PCAPNG_INTERFACE_BLOCK]


def test_open_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        PcapngDumper(str(tmp_path / "missing" / "cap.pcapng"))


def test_stdout_output(capfdbinary):
    with PcapngDumper("-") as pd:
        pd.dump_enhanced_pkt(0, b"xyzw")
    out = capfdbinary.readouterr().out
    blocks = _blocks(out)
    assert [b[0] for b in blocks] == [PCAPNG_SECTION_BLOCK,
                                      PCAPNG_ENHANCED_PACKET_BLOCK]
    assert pd.closed