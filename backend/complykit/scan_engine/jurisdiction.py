from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from complykit.domain_utils import public_suffix
from complykit.scan_engine.signals import REGULATION_KEYWORDS

EU_SUFFIXES = {
    'de', 'fr', 'es', 'it', 'nl', 'be', 'at', 'pt', 'pl', 'se', 'fi', 'dk',
    'ie', 'gr', 'cz', 'ro', 'hu', 'bg', 'hr', 'sk', 'si', 'lt', 'lv', 'ee',
    'cy', 'lu', 'mt', 'eu',
}
SUFFIX_JURISDICTIONS = {
    'uk': 'UK_DPA',
    'br': 'BR_LGPD',
    'ca': 'CA_PIPEDA',
    'au': 'AU_PRIVACY',
    'us': 'US_CCPA',
}
LANG_REGION_JURISDICTIONS = {
    'gb': 'UK_DPA',
    'uk': 'UK_DPA',
    'br': 'BR_LGPD',
    'ca': 'CA_PIPEDA',
    'au': 'AU_PRIVACY',
    'us': 'US_CCPA',
    **{code: 'EU_GDPR' for code in ('de', 'fr', 'es', 'it', 'nl', 'be', 'at', 'pt', 'pl', 'se', 'fi', 'dk', 'ie')},
}
# Languages spoken almost exclusively inside the EU.
EU_LANGUAGES = {
    'de', 'it', 'nl', 'pl', 'sv', 'fi', 'da', 'el', 'cs', 'ro', 'hu', 'bg',
    'hr', 'sk', 'sl', 'lt', 'lv', 'et', 'mt', 'ga',
}


def _suffix_jurisdiction(suffix: str) -> str | None:
    last_label = suffix.rsplit('.', 1)[-1] if suffix else ''
    if last_label in EU_SUFFIXES:
        return 'EU_GDPR'
    return SUFFIX_JURISDICTIONS.get(last_label)


def _lang_jurisdiction(lang: str) -> str | None:
    parts = lang.replace('_', '-').lower().split('-')
    if len(parts) > 1 and parts[1] in LANG_REGION_JURISDICTIONS:
        return LANG_REGION_JURISDICTIONS[parts[1]]
    if parts[0] in EU_LANGUAGES:
        return 'EU_GDPR'
    return None


def infer_jurisdiction(url: str, signals: dict[str, Any]) -> tuple[str | None, float, dict[str, Any]]:
    votes: dict[str, int] = {}
    evidence: dict[str, Any] = {}

    suffix = public_suffix(urlparse(url or '').hostname or '')
    from_suffix = _suffix_jurisdiction(suffix)
    if from_suffix:
        votes[from_suffix] = votes.get(from_suffix, 0) + 2
        evidence['tld'] = suffix

    mentioned = {REGULATION_KEYWORDS[keyword] for keyword in signals.get('regulation_mentions') or [] if keyword in REGULATION_KEYWORDS}
    for jurisdiction in sorted(mentioned):
        votes[jurisdiction] = votes.get(jurisdiction, 0) + 1
    if mentioned:
        evidence['regulation_mentions'] = list(signals.get('regulation_mentions') or [])

    lang = str(signals.get('html_lang') or '')
    from_lang = _lang_jurisdiction(lang) if lang else None
    if from_lang:
        votes[from_lang] = votes.get(from_lang, 0) + 1
        evidence['html_lang'] = lang

    total_votes = sum(votes.values())
    if total_votes == 0:
        return None, 0.0, evidence

    ranked = sorted(votes.items(), key=lambda item: item[1], reverse=True)
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return None, 0.3, {'votes': votes, **evidence}

    winner, max_votes = ranked[0]
    confidence = round(max_votes / total_votes, 2)
    return winner, confidence, {'votes': votes, **evidence}
