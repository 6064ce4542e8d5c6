from __future__ import annotations

import re
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

PRIVACY_PATTERN = re.compile(
    r'(privacy|privacidad|datenschutz|confidentialit|privacidade|privacy-policy|informativa)',
    re.IGNORECASE,
)
TERMS_PATTERN = re.compile(
    r'(terms|condiciones|nutzungsbedingungen|\bagb\b|conditions.*utilisation|termos|termini)',
    re.IGNORECASE,
)
COOKIE_BANNER_PATTERN = re.compile(
    r'(cookie-consent|cookie-banner|cookie-notice|cookieconsent|cc-window|gdpr|onetrust|cookiebot|quantcast|usercentrics|didomi|iubenda)',
    re.IGNORECASE,
)
CONTACT_PATTERN = re.compile(r'(contact|contacto|kontakt|contatto|contato)', re.IGNORECASE)
EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
TRACKER_PATTERNS = {
    'google_analytics': re.compile(r'(google-analytics|gtag\(|analytics\.js)', re.IGNORECASE),
    'google_tag_manager': re.compile(r'googletagmanager', re.IGNORECASE),
    'facebook_pixel': re.compile(r'(fbq\(|facebook.*pixel|connect\.facebook\.net)', re.IGNORECASE),
    'hotjar': re.compile(r'hotjar', re.IGNORECASE),
    'mixpanel': re.compile(r'mixpanel', re.IGNORECASE),
    'segment': re.compile(r'segment\.(com|io)', re.IGNORECASE),
}
COOKIE_POLICY_PATTERN = re.compile(r'cookie.*(polic|politi|richtlinie)|(polic|politi|richtlinie).*cookie', re.IGNORECASE)
DO_NOT_SELL_PATTERN = re.compile(
    r"(do[\s-]+not[\s-]+sell|don'?t[\s-]+sell|your[\s-]+privacy[\s-]+choices|opt[\s-]*out[\s-]+of[\s-]+sale)",
    re.IGNORECASE,
)
REJECT_PATTERN = re.compile(
    r'(reject|decline|refuse|deny|only necessary|necessary only|essential only|ablehnen|rechazar|refuser|rifiuta|rejeitar)',
    re.IGNORECASE,
)
REJECT_ATTRIBUTE_MARKERS = ('onetrust-reject-all-handler', 'cybotcookiebotdialogbodybuttondecline', 'cc-deny', 'reject-all')
OPT_OUT_TERMS = ('unsubscribe', 'opt-out', 'opt out', 'darse de baja', 'abmelden', 'se désabonner', 'désinscrire')
REGULATION_KEYWORDS = {
    'gdpr': 'EU_GDPR',
    'rgpd': 'EU_GDPR',
    'dsgvo': 'EU_GDPR',
    'ccpa': 'US_CCPA',
    'cpra': 'US_CCPA',
    'california': 'US_CCPA',
    'lgpd': 'BR_LGPD',
    'pipeda': 'CA_PIPEDA',
    'uk gdpr': 'UK_DPA',
    'data protection act 2018': 'UK_DPA',
    'privacy act 1988': 'AU_PRIVACY',
    'australian privacy principles': 'AU_PRIVACY',
}


def _empty_signals(final_url: str) -> dict[str, Any]:
    return {
        'final_url': final_url,
        'is_https': urlparse(final_url or '').scheme == 'https',
        'html_lang': '',
        'links': {
            'privacy': None,
            'terms': None,
            'cookie_policy': None,
            'contact': None,
            'do_not_sell': None,
        },
        'link_status': {'privacy': None, 'terms': None},
        'cookie_consent': {'detected': False, 'markers': []},
        'cookie_reject_option': False,
        'contact': {'email': False, 'contact_link': False, 'mention': False},
        'trackers': [],
        'form_count': 0,
        'opt_out': False,
        'images': {'total': 0, 'with_alt': 0},
        'regulation_mentions': [],
    }


def _find_link(anchors: list[tuple[str, str]], pattern: re.Pattern) -> str | None:
    for href, text in anchors:
        if href.lower().startswith(('mailto:', 'tel:')):
            continue
        if pattern.search(href) or pattern.search(text):
            return href
    return None


def extract_signals(html: str, final_url: str) -> dict[str, Any]:
    """Extract compliance signals from a fetched page.

    Links are returned absolute, resolved against ``final_url``. The caller
    fills ``link_status`` after probing the privacy and terms links.
    """
    signals = _empty_signals(final_url)
    soup = BeautifulSoup(html or '', 'html.parser')
    html_lower = (html or '').lower()

    html_tag = soup.find('html')
    if html_tag is not None:
        signals['html_lang'] = str(html_tag.get('lang') or '').strip().lower()

    anchors: list[tuple[str, str]] = []
    for anchor in soup.find_all('a', href=True):
        href = str(anchor.get('href') or '').strip()
        if not href or href.startswith('#') or href.lower().startswith('javascript:'):
            continue
        text = anchor.get_text(' ', strip=True)
        if href.lower().startswith(('mailto:', 'tel:')):
            anchors.append((href, text))
            continue
        anchors.append((urljoin(final_url, href), text))

    links = signals['links']
    links['privacy'] = _find_link(anchors, PRIVACY_PATTERN)
    links['terms'] = _find_link(anchors, TERMS_PATTERN)
    links['cookie_policy'] = _find_link(anchors, COOKIE_POLICY_PATTERN)
    links['contact'] = _find_link(anchors, CONTACT_PATTERN)
    links['do_not_sell'] = _find_link(anchors, DO_NOT_SELL_PATTERN)

    markers = sorted({match.group(1).lower() for match in COOKIE_BANNER_PATTERN.finditer(html or '')})
    signals['cookie_consent'] = {'detected': bool(markers), 'markers': markers}

    signals['cookie_reject_option'] = _has_reject_option(soup, html_lower)

    text = soup.get_text(' ', strip=True)
    signals['contact'] = {
        'email': any(href.lower().startswith('mailto:') for href, _ in anchors) or bool(EMAIL_PATTERN.search(text)),
        'contact_link': bool(links['contact']),
        'mention': bool(CONTACT_PATTERN.search(text)),
    }

    trackers: list[str] = []
    for script in soup.find_all('script'):
        source = f"{script.get('src') or ''} {script.string or ''}"
        for name, pattern in TRACKER_PATTERNS.items():
            if name not in trackers and pattern.search(source):
                trackers.append(name)
    signals['trackers'] = trackers

    signals['form_count'] = len(soup.find_all('form'))
    signals['opt_out'] = any(term in html_lower for term in OPT_OUT_TERMS)

    images = soup.find_all('img')
    signals['images'] = {
        'total': len(images),
        'with_alt': sum(1 for image in images if str(image.get('alt') or '').strip()),
    }

    text_lower = text.lower()
    signals['regulation_mentions'] = [keyword for keyword in REGULATION_KEYWORDS if keyword in text_lower]
    return signals


def _has_reject_option(soup: BeautifulSoup, html_lower: str) -> bool:
    if any(marker in html_lower for marker in REJECT_ATTRIBUTE_MARKERS):
        return True
    for element in soup.find_all(['button', 'a']):
        label = element.get_text(' ', strip=True)
        if label and len(label) <= 40 and REJECT_PATTERN.search(label):
            return True
    return False
