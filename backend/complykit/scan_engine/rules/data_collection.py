from complykit.scan_engine.rules.base import BaseComplianceRule


class DataCollectionDisclosureRule(BaseComplianceRule):
    code = 'NO_DATA_COLLECTION_DISCLOSURE'
    title = 'No Data Collection Disclosure'
    description = (
        'Forms collecting user data found but no disclosure '
        "about what data is collected or how it's used."
    )
    severity = 10
    recommendation = 'Explain what form data you collect and why in your Privacy Policy'

    def evaluate(self, signals):
        form_count = int(signals.get('form_count') or 0)
        has_privacy = bool((signals.get('links') or {}).get('privacy'))
        return self.verdict(
            passed=form_count == 0 or has_privacy,
            evidence={'form_count': form_count, 'privacy_link': has_privacy},
        )


class OptOutRule(BaseComplianceRule):
    code = 'NO_OPT_OUT'
    title = 'No Opt-Out Mechanism'
    description = 'No unsubscribe or opt-out mechanism found for marketing communications.'
    severity = 7
    recommendation = 'Offer an unsubscribe or opt-out option wherever you collect contact details'

    def evaluate(self, signals):
        form_count = int(signals.get('form_count') or 0)
        has_opt_out = bool(signals.get('opt_out'))
        return self.verdict(
            passed=has_opt_out or form_count == 0,
            evidence={'opt_out': has_opt_out, 'form_count': form_count},
        )


class DoNotSellLinkRule(BaseComplianceRule):
    code = 'NO_DO_NOT_SELL_LINK'
    title = 'Missing "Do Not Sell My Personal Information" Link'
    description = 'California residents must be offered a clear link to opt out of the sale or sharing of their personal information.'
    severity = 8
    jurisdictions = frozenset({'US_CCPA'})
    recommendation = 'Add a "Do Not Sell or Share My Personal Information" link to your footer'

    def evaluate(self, signals):
        link = (signals.get('links') or {}).get('do_not_sell')
        return self.verdict(passed=bool(link), evidence={'do_not_sell_link': link})
