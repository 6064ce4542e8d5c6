from django.test import SimpleTestCase

from complykit.scan_engine.jurisdiction import infer_jurisdiction


class InferJurisdictionTests(SimpleTestCase):
    def test_eu_country_code_tld(self):
        jurisdiction, confidence, evidence = infer_jurisdiction('https://shop.example.de/', {})

        self.assertEqual(jurisdiction, 'EU_GDPR')
        self.assertEqual(confidence, 1.0)
        self.assertEqual(evidence['tld'], 'de')

    def test_multi_label_suffixes(self):
        self.assertEqual(infer_jurisdiction('https://example.co.uk', {})[0], 'UK_DPA')
        self.assertEqual(infer_jurisdiction('https://example.com.br', {})[0], 'BR_LGPD')
        self.assertEqual(infer_jurisdiction('https://example.com.au', {})[0], 'AU_PRIVACY')

    def test_regulation_keywords_and_language_region(self):
        signals = {'regulation_mentions': ['ccpa'], 'html_lang': 'en-us'}

        jurisdiction, confidence, evidence = infer_jurisdiction('https://example.com/', signals)

        self.assertEqual(jurisdiction, 'US_CCPA')
        self.assertEqual(confidence, 1.0)
        self.assertEqual(evidence['votes'], {'US_CCPA': 2})

    def test_weaker_evidence_lowers_confidence(self):
        signals = {'regulation_mentions': ['gdpr']}

        jurisdiction, confidence, _ = infer_jurisdiction('https://example.ca', signals)

        self.assertEqual(jurisdiction, 'CA_PIPEDA')
        self.assertEqual(confidence, 0.67)

    def test_tie_is_inconclusive(self):
        signals = {'regulation_mentions': ['gdpr', 'lgpd']}

        jurisdiction, confidence, evidence = infer_jurisdiction('https://example.com', signals)

        self.assertIsNone(jurisdiction)
        self.assertEqual(confidence, 0.3)
        self.assertEqual(evidence['votes'], {'EU_GDPR': 1, 'BR_LGPD': 1})

    def test_no_evidence(self):
        self.assertEqual(infer_jurisdiction('https://example.com', {'html_lang': 'en'}), (None, 0.0, {}))
