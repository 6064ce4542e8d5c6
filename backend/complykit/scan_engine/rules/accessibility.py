from complykit.scan_engine.rules.base import BaseComplianceRule

MIN_ALT_TEXT_RATIO = 0.5


class AccessibilityBasicsRule(BaseComplianceRule):
    code = 'NO_ACCESSIBILITY_BASICS'
    title = 'Missing Basic Accessibility'
    description = 'Basic accessibility features (alt text on images) are missing from key elements.'
    severity = 5
    recommendation = 'Add descriptive alt text to your images'

    def evaluate(self, signals):
        images = signals.get('images') or {}
        total = int(images.get('total') or 0)
        with_alt = int(images.get('with_alt') or 0)
        passed = total == 0 or with_alt / total > MIN_ALT_TEXT_RATIO
        return self.verdict(passed=passed, evidence={'total': total, 'with_alt': with_alt})
