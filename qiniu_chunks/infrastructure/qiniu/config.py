"""
Construction input for the Qiniu object client.
"""

import enum
from dataclasses import dataclass


class AccessFlag(enum.Flag):
    """
    Independent access options parsed from the free-form flag string.

    HTTPS forces TLS, CDN routes uploads through CDN domains, PRIVATE
    switches reads to signed, expiring URLs.
    """
    NONE = 0
    HTTPS = enum.auto()
    CDN = enum.auto()
    PRIVATE = enum.auto()


_KEYWORDS = {
    "https": AccessFlag.HTTPS,
    "cdn": AccessFlag.CDN,
    "private": AccessFlag.PRIVATE,
}


def parse_access_flags(flag: str) -> AccessFlag:
    """
    Parse a flag string such as ``"https,cdn,private"``.

    Keywords are matched as substrings in any order; anything else in the
    string is ignored.
    """
    result = AccessFlag.NONE
    for keyword, member in _KEYWORDS.items():
        if keyword in (flag or ""):
            result |= member
    return result


@dataclass(frozen=True)
class QiniuConfig:
    """
    Configuration for a Qiniu bucket.

    ``url`` is the base domain objects are read from (often a CDN domain
    bound to the bucket). ``region`` is a Kodo region id such as ``z0``;
    empty or unknown values fall back to the default region.
    """
    url: str
    access_key: str
    secret_key: str
    bucket: str
    region: str = ""
    flag: str = ""
    timeout_seconds: float = 30.0

    @property
    def access_flags(self) -> AccessFlag:
        return parse_access_flags(self.flag)
