from complykit.scan_engine.rules.base import BaseComplianceRule


class ContactInformationRule(BaseComplianceRule):
    code = 'NO_CONTACT_INFO'
    title = 'No Contact Information'
    description = (
        'No visible contact email, form, or address found. '
        'Most regulations require users to be able to contact you.'
    )
    severity = 8
    recommendation = 'Add visible contact information to your website'

    def evaluate(self, signals):
        contact = signals.get('contact') or {}
        has_contact = any(bool(contact.get(field)) for field in ('email', 'contact_link', 'mention'))
        return self.verdict(passed=has_contact, evidence={'contact': contact})
