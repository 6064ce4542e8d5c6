from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit, urlunsplit

from tldextract import extract

from complykit.exceptions import InvalidInput

HOSTNAME_PATTERN = re.compile(r'^[a-z0-9][a-z0-9.-]{0,253}[a-z0-9]$')
FORBIDDEN_HOSTNAMES = {'localhost', 'localhost.localdomain'}
ALLOWED_SCHEMES = {'http', 'https'}


def normalize_url(raw_url: str) -> str:
    url = (raw_url or '').strip()
    if not url:
        raise InvalidInput('A website URL is required.')
    if '://' not in url:
        url = f'https://{url}'

    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise InvalidInput(f'Invalid URL: {raw_url}') from exc

    scheme = parts.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise InvalidInput('Only http and https URLs can be scanned.')

    hostname = (parts.hostname or '').strip('.').lower()
    if not is_public_hostname(hostname):
        raise InvalidInput(f'Invalid or non-public host: {hostname or raw_url}')

    host = f'[{hostname}]' if ':' in hostname else hostname
    netloc = host if port is None else f'{host}:{port}'
    path = parts.path.rstrip('/')
    return urlunsplit((scheme, netloc, path, parts.query, ''))


def is_public_hostname(hostname: str) -> bool:
    if not hostname:
        return False
    if hostname in FORBIDDEN_HOSTNAMES or hostname.endswith('.localhost'):
        return False

    try:
        return ipaddress.ip_address(hostname.strip('[]')).is_global
    except ValueError:
        pass

    if ' ' in hostname or '_' in hostname or '..' in hostname:
        return False
    if len(hostname) > 253 or '.' not in hostname:
        return False
    if not HOSTNAME_PATTERN.match(hostname):
        return False

    for label in hostname.split('.'):
        if not label or len(label) > 63:
            return False
        if label.startswith('-') or label.endswith('-'):
            return False

    return bool(extract(hostname).suffix)


def public_suffix(hostname: str) -> str:
    return (extract(hostname or '').suffix or '').lower()
