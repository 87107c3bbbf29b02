"""
Qiniu Kodo region resolution.

Host data comes from the SDK's ``Region.from_region_id``; this module only
decides which region applies and whether the CDN or the source upload
domain is tried first.
"""

import logging

from qiniu.http.region import Region, ServiceName

logger = logging.getLogger(__name__)

KNOWN_REGION_IDS = ("z0", "z1", "z2", "na0", "as0", "cn-east-2")
DEFAULT_REGION_ID = "z0"


def resolve_region(region_id: str, use_cdn: bool = False) -> Region:
    """
    Build the SDK region for ``region_id``, falling back to East China (z0).

    Empty and unknown ids are not errors; the default region is used.
    With ``use_cdn`` the CDN-accelerated upload domains (``upload*``) come
    first, otherwise the source ones (``up*``) do.
    """
    if region_id and region_id not in KNOWN_REGION_IDS:
        logger.warning(
            "Unknown Qiniu region, using default",
            extra={"region": region_id, "default": DEFAULT_REGION_ID},
        )
        region_id = ""

    region = Region.from_region_id(region_id or DEFAULT_REGION_ID)
    region.services[ServiceName.UP].sort(
        key=lambda e: e.host.startswith("upload") != use_cdn
    )
    return region


def service_url(region: Region, service: ServiceName, use_https: bool) -> str:
    """First endpoint of ``service`` in ``region`` with the chosen scheme."""
    scheme = "https" if use_https else "http"
    return region.services[service][0].get_value(scheme=scheme)
