from __future__ import annotations

from dataclasses import dataclass
import ipaddress
import logging
import socket
from urllib.parse import urljoin, urlparse

from django.conf import settings
import requests

from complykit.domain_utils import ALLOWED_SCHEMES, is_public_hostname
from complykit.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml', 'text/plain')
_CHUNK_SIZE = 64 * 1024


@dataclass
class FetchedPage:
    requested_url: str
    final_url: str
    status_code: int
    html: str
    truncated: bool = False


def _is_public_ip(ip_text: str) -> bool:
    try:
        ip_value = ipaddress.ip_address(ip_text)
    except ValueError:
        return False

    return ip_value.is_global


def hostname_resolves_to_public_ips(hostname: str) -> bool:
    try:
        addr_info = socket.getaddrinfo(hostname, 443, proto=socket.IPPROTO_TCP)
    except OSError:
        return False

    addresses = {item[4][0] for item in addr_info if item and item[4]}
    if not addresses:
        return False

    return all(_is_public_ip(address) for address in addresses)


def _session() -> requests.Session:
    session = requests.Session()
    session.headers.update({
        'User-Agent': getattr(settings, 'SCAN_USER_AGENT', 'ComplyKitScanner/1.0'),
        'Accept': 'text/html,application/xhtml+xml',
    })
    return session


def _read_capped(response: requests.Response, max_bytes: int) -> tuple[bytes, bool]:
    body = bytearray()
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        body.extend(chunk)
        if len(body) >= max_bytes:
            return bytes(body[:max_bytes]), True
    return bytes(body), False


def _check_hop(url: str) -> None:
    parsed = urlparse(url)
    hostname = (parsed.hostname or '').lower()
    if parsed.scheme not in ALLOWED_SCHEMES or not is_public_hostname(hostname):
        raise UpstreamUnavailable(f'Refusing to request non-public URL {url}.')
    if not hostname_resolves_to_public_ips(hostname):
        raise UpstreamUnavailable(f'{hostname} does not resolve to a public address.')


def _send(session: requests.Session, method: str, url: str, timeout: float, **kwargs) -> requests.Response:
    """Send ``method`` to ``url``, following redirects one hop at a time.

    Every hop is checked before the request for it goes out, so a redirect
    can never make the scanner talk to a private or loopback address.
    """
    max_redirects = int(getattr(settings, 'SCAN_MAX_REDIRECTS', 5))
    target = url
    for _ in range(max_redirects + 1):
        _check_hop(target)
        response = session.request(method, target, timeout=timeout, allow_redirects=False, **kwargs)
        if not response.is_redirect:
            return response
        location = response.headers.get('Location') or ''
        response.close()
        target = urljoin(target, location)
    raise requests.TooManyRedirects(f'{url} exceeded {max_redirects} redirects.')


def fetch_page(url: str) -> FetchedPage:
    timeout = float(getattr(settings, 'SCAN_TIMEOUT_SECONDS', 15.0))
    max_bytes = int(getattr(settings, 'SCAN_MAX_BODY_BYTES', 2_000_000))

    try:
        with _session() as session:
            with _send(session, 'GET', url, timeout, stream=True) as response:
                if response.status_code >= 400:
                    raise UpstreamUnavailable(f'{url} responded with HTTP {response.status_code}.')

                content_type = str(response.headers.get('Content-Type') or '').lower()
                if content_type and not content_type.startswith(HTML_CONTENT_TYPES):
                    raise UpstreamUnavailable(f'{url} did not return an HTML page ({content_type}).')

                body, truncated = _read_capped(response, max_bytes)
                encoding = (response.encoding if 'charset=' in content_type else None) or 'utf-8'
                return FetchedPage(
                    requested_url=url,
                    final_url=response.url,
                    status_code=response.status_code,
                    html=body.decode(encoding, errors='replace'),
                    truncated=truncated,
                )
    except requests.TooManyRedirects as exc:
        raise UpstreamUnavailable(f'{url} exceeded the redirect limit.') from exc
    except requests.RequestException as exc:
        raise UpstreamUnavailable(f'Could not fetch {url}: {exc}') from exc
    except LookupError as exc:
        raise UpstreamUnavailable(f'{url} declared an unknown character encoding.') from exc


def probe_link(url: str) -> int:
    """Return the HTTP status for a linked page, or 0 when it cannot be reached."""
    timeout = float(getattr(settings, 'SCAN_TIMEOUT_SECONDS', 15.0))
    try:
        with _session() as session:
            response = _send(session, 'HEAD', url, timeout)
            if response.status_code in {403, 405, 501}:
                with _send(session, 'GET', url, timeout, stream=True) as fallback:
                    return fallback.status_code
            return response.status_code
    except UpstreamUnavailable as exc:
        logger.info('Skipping linked page probe for %s: %s', url, exc.message)
        return 0
    except requests.RequestException as exc:
        logger.info('Linked page probe failed for %s: %s', url, exc)
        return 0
