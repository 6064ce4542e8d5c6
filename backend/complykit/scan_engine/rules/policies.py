from complykit.scan_engine.rules.base import BaseComplianceRule, link_is_broken


class PrivacyPolicyRule(BaseComplianceRule):
    code = 'MISSING_PRIVACY_POLICY'
    title = 'Missing Privacy Policy'
    description = (
        'Your website does not have a visible Privacy Policy link. '
        'Required by GDPR, CCPA, and most data protection laws.'
    )
    severity = 15
    recommendation = 'Generate a Privacy Policy tailored to your website'

    def evaluate(self, signals):
        link = (signals.get('links') or {}).get('privacy')
        return self.verdict(passed=bool(link), evidence={'privacy_link': link})


class TermsOfServiceRule(BaseComplianceRule):
    code = 'MISSING_TERMS'
    title = 'Missing Terms of Service'
    description = 'No Terms of Service or Terms and Conditions link was found on your website.'
    severity = 10
    recommendation = 'Create Terms of Service to protect your business'

    def evaluate(self, signals):
        link = (signals.get('links') or {}).get('terms')
        return self.verdict(passed=bool(link), evidence={'terms_link': link})


class BrokenPrivacyLinkRule(BaseComplianceRule):
    code = 'BROKEN_PRIVACY_LINK'
    title = 'Broken Privacy Policy Link'
    description = 'A link to the privacy policy was found but returns an error.'
    severity = 10
    recommendation = 'Fix the Privacy Policy link so it resolves to a live page'

    def evaluate(self, signals):
        status = (signals.get('link_status') or {}).get('privacy')
        return self.verdict(passed=not link_is_broken(status), evidence={'status': status})


class BrokenTermsLinkRule(BaseComplianceRule):
    code = 'BROKEN_TERMS_LINK'
    title = 'Broken Terms Link'
    description = 'A link to terms of service was found but returns an error.'
    severity = 8
    recommendation = 'Fix the Terms of Service link so it resolves to a live page'

    def evaluate(self, signals):
        status = (signals.get('link_status') or {}).get('terms')
        return self.verdict(passed=not link_is_broken(status), evidence={'status': status})


class CookiePolicyRule(BaseComplianceRule):
    code = 'MISSING_COOKIE_POLICY'
    title = 'Missing Cookie Policy'
    description = 'Cookies are being set but no separate Cookie Policy page was found.'
    severity = 8
    recommendation = 'Publish a Cookie Policy listing the cookies your site sets'

    def evaluate(self, signals):
        link = (signals.get('links') or {}).get('cookie_policy')
        trackers = list(signals.get('trackers') or [])
        return self.verdict(
            passed=bool(link) or not trackers,
            evidence={'cookie_policy_link': link, 'trackers': trackers},
        )
