# centerline/core/qr.py
import logging
from typing import Iterable, Mapping, Optional, Sequence
from urllib.parse import parse_qs, quote, urlsplit

from centerline.core.catalog import find_point
from centerline.core.config import get_setting
from centerline.core.models import Point

logger = logging.getLogger(__name__)

DEFAULT_QR_ENDPOINT = "https://api.qrserver.com/v1/create-qr-code/"
DEFAULT_LOCAL_HOSTS = ('localhost', '127.0.0.1', '::1')
DEEP_LINK_PARAMS = ('p', 'point')


def host_of(origin: str) -> str:
    """Hostname of an origin such as 'http://10.0.0.5:3000' (lower-cased, no port)."""
    return (urlsplit(origin).hostname or '').lower()


class QrLinkBuilder:
    """
    Builds deep links to a point's detail view and the matching QR image request.

    `origin` is where the dashboard is currently served from. On a local host
    the operator-configured `public_base_url` (usually the LAN address) takes
    its place so that a phone can reach the link; on any other host the origin
    is already reachable and the override is ignored.
    """

    def __init__(self, origin: str, public_base_url: Optional[str] = None,
                 endpoint: str = DEFAULT_QR_ENDPOINT, margin: int = 4, ecc: str = 'M',
                 image_format: str = 'svg', local_hosts: Iterable[str] = DEFAULT_LOCAL_HOSTS):
        self.origin = origin
        self.public_base_url = public_base_url or None
        self.endpoint = endpoint
        self.margin = margin
        self.ecc = ecc
        self.image_format = image_format
        self.local_hosts = tuple(h.lower() for h in local_hosts)

    @classmethod
    def from_config(cls, origin: str, public_base_url: Optional[str] = None) -> 'QrLinkBuilder':
        return cls(
            origin,
            public_base_url,
            endpoint=get_setting('services.qr.endpoint', DEFAULT_QR_ENDPOINT),
            margin=int(get_setting('services.qr.margin', 4)),
            ecc=get_setting('services.qr.ecc', 'M'),
            image_format=get_setting('services.qr.format', 'svg'),
            local_hosts=get_setting('services.qr.local_hosts', DEFAULT_LOCAL_HOSTS),
        )

    @property
    def is_local_host(self) -> bool:
        return host_of(self.origin) in self.local_hosts

    @property
    def effective_base_url(self) -> str:
        if self.is_local_host and self.public_base_url:
            return self.public_base_url
        return self.origin

    @property
    def needs_public_url_setup(self) -> bool:
        """True when links generated here would not open on another device."""
        if not self.is_local_host:
            return False
        return not self.public_base_url or 'localhost' in self.public_base_url

    def deep_link(self, point_id: str) -> str:
        base = self.effective_base_url
        if base.endswith('/'):
            base = base[:-1]
        return f"{base}/?p={quote(point_id, safe='')}"

    def qr_image_url(self, point_id: str, size: int = 200) -> str:
        if size <= 0:
            raise ValueError(f"QR size must be a positive number of pixels (got {size})")
        data = quote(self.deep_link(point_id), safe='')
        return (f"{self.endpoint}?size={size}x{size}&data={data}"
                f"&margin={self.margin}&ecc={self.ecc}&format={self.image_format}")


def deep_link_ref(query: str) -> Optional[str]:
    """Extracts the point reference from a query string ('?p=..' or '?point=..')."""
    params: Mapping[str, Sequence[str]] = parse_qs(query.lstrip('?'))
    for name in DEEP_LINK_PARAMS:
        values = params.get(name)
        if values and values[0]:
            return values[0]
    return None


def resolve_deep_link(query: str, points: Iterable[Point]) -> Optional[Point]:
    """Point addressed by a deep-link query: exact id first, then number."""
    ref = deep_link_ref(query)
    if ref is None:
        return None
    point = find_point(points, ref)
    if point is not None:
        return point
    logger.info(f"Deep link '{ref}' does not match any point.")
    return None
