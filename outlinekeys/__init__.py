"""
Shadowsocks access keys: parsing, canonical serialization, matching and
per-server session handling.
"""
__version__ = "1.0.0"
