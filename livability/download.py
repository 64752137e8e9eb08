"""WFS download link for the full livability table."""

from typing import Iterable, Optional, Sequence
from urllib.parse import urlencode

DOWNLOAD_PROPERTIES: Sequence[str] = (
    "TOWN",
    "TOWN_ID",
    "COMMUNITY_TYPE",
    "PD_GROUP",
    "POP_2009",
    "POP_DENSITY",
    "EMP_2009",
    "EMP_DENSITY",
    "ELDERLY_POP_PCT",
    "SIDEWALK_MI",
    "SIDEWALK_COV_PCT",
    "WALK_SHARE_PCT",
    "BIKE_TRAIL_MI",
    "BIKE_LANE_MI",
    "BIKE_COV_PCT",
    "BIKE_SHARE_PCT",
    "AUTOS_PER_HH",
    "VMT_PER_HH",
    "DROVE_ALONE_SHARE_PCT",
    "CARPOOL_SHARE_PCT",
    "PED_CRASH_RATE",
    "BIKE_CRASH_RATE",
    "TRANSIT_SHARE_PCT",
    "WAH_SHARE_PCT",
    "OTHER_SHARE_PCT",
    "SMALL_SAMPLE_SIZE",
)


def server_root(
    hostname: Optional[str],
    internal_hosts: Iterable[str] = ("lindalino",),
    internal_root: str = "/geoserver",
    public_root: str = "/map",
) -> str:
    """GeoServer path prefix: the internal root inside the firewall, the public one elsewhere."""
    if hostname and hostname.lower() in {h.lower() for h in internal_hosts}:
        return internal_root
    return public_root


def build_download_url(
    hostname: Optional[str] = None,
    base_url: str = "http://www.ctps.org",
    type_name: str = "ctpssde:MPODATA.CTPS_TOWNS_MAPC_LIVABILITY",
    version: str = "1.0.0",
    output_format: str = "csv",
    properties: Sequence[str] = DOWNLOAD_PROPERTIES,
    internal_hosts: Iterable[str] = ("lindalino",),
    internal_root: str = "/geoserver",
    public_root: str = "/map",
) -> str:
    """
    WFS ``getfeature`` URL returning the livability table as CSV.

    Args:
        hostname: Host the browser is served from; selects the server root
        base_url: Public site the WFS endpoint lives under

    Returns:
        Absolute download URL
    """
    root = server_root(hostname, internal_hosts, internal_root, public_root)
    query = urlencode(
        [
            ("service", "wfs"),
            ("version", version),
            ("typename", type_name),
            ("request", "getfeature"),
            ("outputFormat", output_format),
            ("propertyname", ",".join(properties)),
        ],
        safe=":,",
    )
    return f"{base_url.rstrip('/')}{root}/wfs?{query}"


def download_url_from_config(config, hostname: Optional[str] = None) -> str:
    """``build_download_url`` with the ``server`` and ``download`` sections of an ``ops.Config``."""
    return build_download_url(
        hostname=hostname,
        base_url=config.get_server_setting("base_url"),
        type_name=config.get_download_setting("type_name"),
        version=str(config.get_download_setting("version")),
        output_format=config.get_download_setting("output_format"),
        internal_hosts=config.get_server_setting("internal_hosts") or (),
        internal_root=config.get_server_setting("internal_root"),
        public_root=config.get_server_setting("public_root"),
    )
