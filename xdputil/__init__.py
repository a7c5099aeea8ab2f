"""Userspace helpers for XDP tooling: constants, hashing, logging, PcapNG writing and sample keys."""

__version__ = "1.4.1"

__all__ = [
    "constants",
    "jhash",
    "log",
    "xpcapng",
    "sample",
]