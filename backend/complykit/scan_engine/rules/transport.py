from complykit.scan_engine.rules.base import BaseComplianceRule


class HttpsRule(BaseComplianceRule):
    code = 'NO_HTTPS'
    title = 'Not Using HTTPS'
    description = 'Your website is not served over HTTPS. Unencrypted connections put user data at risk.'
    severity = 10
    recommendation = 'Enable HTTPS/SSL for your website'

    def evaluate(self, signals):
        is_https = bool(signals.get('is_https'))
        return self.verdict(
            passed=is_https,
            evidence={'is_https': is_https, 'final_url': signals.get('final_url')},
        )
