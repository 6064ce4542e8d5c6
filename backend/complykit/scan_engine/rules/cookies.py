from complykit.scan_engine.rules.base import BaseComplianceRule


class CookieConsentRule(BaseComplianceRule):
    code = 'MISSING_COOKIE_CONSENT'
    title = 'Missing Cookie Consent Banner'
    description = (
        'No cookie consent mechanism detected. '
        'GDPR requires explicit consent before setting non-essential cookies.'
    )
    severity = 15
    recommendation = 'Add a Cookie Consent banner and Cookie Policy'

    def evaluate(self, signals):
        consent = signals.get('cookie_consent') or {}
        return self.verdict(
            passed=bool(consent.get('detected')),
            evidence={'markers': list(consent.get('markers') or [])},
        )


class ThirdPartyTrackingRule(BaseComplianceRule):
    code = 'THIRD_PARTY_COOKIES'
    title = 'Third-Party Tracking Without Disclosure'
    description = (
        'Third-party scripts (analytics, ads, pixels) detected '
        'but not disclosed in a privacy or cookie policy.'
    )
    severity = 12
    recommendation = 'Disclose third-party tracking in your Privacy Policy'

    def evaluate(self, signals):
        trackers = list(signals.get('trackers') or [])
        has_privacy = bool((signals.get('links') or {}).get('privacy'))
        has_consent = bool((signals.get('cookie_consent') or {}).get('detected'))
        disclosed = has_privacy or has_consent
        return self.verdict(
            passed=not trackers or disclosed,
            evidence={'trackers': trackers, 'disclosed': disclosed},
        )


class CookieRejectOptionRule(BaseComplianceRule):
    code = 'NO_COOKIE_REJECT_OPTION'
    title = 'No Option to Reject Cookies'
    description = 'The cookie banner does not offer a way to reject non-essential cookies as easily as accepting them.'
    severity = 6
    jurisdictions = frozenset({'EU_GDPR', 'UK_DPA'})
    recommendation = 'Add a "Reject all" button to your cookie banner'

    def evaluate(self, signals):
        has_reject = bool(signals.get('cookie_reject_option'))
        has_consent = bool((signals.get('cookie_consent') or {}).get('detected'))
        trackers = list(signals.get('trackers') or [])
        # Nothing to reject when the site neither tracks nor asks for consent.
        nothing_to_reject = not has_consent and not trackers
        return self.verdict(
            passed=has_reject or nothing_to_reject,
            evidence={'reject_option': has_reject, 'cookie_consent': has_consent},
        )
