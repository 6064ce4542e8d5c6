from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from django.template import Context, Engine

from complykit.exceptions import UnsupportedCombination
from complykit.models import DocumentType, Jurisdiction

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = 'English'
GLOBAL = Jurisdiction.GLOBAL
SUPPORTED_LANGUAGES = ('English', 'Spanish', 'French', 'German', 'Portuguese', 'Italian')
OVERRIDE_SUFFIX = '.txt'
OVERRIDE_SEPARATOR = '__'

BASE_PROMPT = """You are an expert legal document writer. Generate a professional {{ document_label }} for the following business:

Business Name: {{ business_name }}
Business Type: {{ business_type|default:"online business" }}
Website: {{ website_url }}
Jurisdiction: {{ jurisdiction_label }}
Date: {{ date }}
Additional info: {{ additional_info }}
{% if failing_issues %}
A compliance scan of the website found these problems. Make sure the document addresses each of them:
{% for issue in failing_issues %}- {{ issue.title }}: {{ issue.description }}
{% endfor %}{% endif %}{% block guidance %}{% endblock %}
Write the document in {{ language }}. Use proper legal formatting with numbered sections and subsections.
Include all standard clauses required by applicable regulations.
The document should be comprehensive, professional, and ready to use.
Do NOT include any AI disclaimers or notes - output ONLY the document content.
"""

JURISDICTION_GUIDANCE = {
    Jurisdiction.EU_GDPR: (
        'Follow the EU General Data Protection Regulation: state the controller identity, '
        'the lawful basis for each purpose, retention periods, international transfers, '
        'data subject rights under Articles 15 to 22 and the right to lodge a complaint '
        'with a supervisory authority.'
    ),
    Jurisdiction.UK_DPA: (
        'Follow the UK GDPR and the Data Protection Act 2018: identify the controller, '
        'lawful bases, retention, transfers outside the UK and the right to complain to the ICO.'
    ),
    Jurisdiction.US_CCPA: (
        'Follow the California Consumer Privacy Act as amended by the CPRA: list categories of '
        'personal information collected, sold or shared in the last 12 months, the right to know, '
        'delete, correct and opt out, and describe the "Do Not Sell or Share" mechanism.'
    ),
    Jurisdiction.BR_LGPD: (
        'Follow the Brazilian LGPD (Lei 13.709/2018): name the controller and the encarregado (DPO), '
        'the legal bases under Article 7 and the data subject rights under Article 18.'
    ),
    Jurisdiction.CA_PIPEDA: (
        'Follow PIPEDA: cover the ten fair information principles, meaningful consent and '
        'how individuals can access and correct their information.'
    ),
    Jurisdiction.AU_PRIVACY: (
        'Follow the Australian Privacy Act 1988 and the Australian Privacy Principles, '
        'including overseas disclosure and how to complain to the OAIC.'
    ),
}

_JURISDICTION_SCOPED_TYPES = (DocumentType.PRIVACY_POLICY, DocumentType.COOKIE_POLICY)


@dataclass(frozen=True)
class TemplateKey:
    document_type: str
    jurisdiction: str
    language: str

    @classmethod
    def of(cls, document_type: str, jurisdiction: str, language: str) -> 'TemplateKey':
        return cls(str(document_type).upper(), str(jurisdiction).upper(), str(language).strip().lower())

    def __str__(self) -> str:
        return OVERRIDE_SEPARATOR.join((self.document_type, self.jurisdiction, self.language))


def _guidance_template(guidance: str) -> str:
    head, tail = BASE_PROMPT.split('{% block guidance %}{% endblock %}')
    return f'{head}\n{guidance}\n{tail}'


def builtin_templates() -> dict[TemplateKey, str]:
    templates: dict[TemplateKey, str] = {}
    base = BASE_PROMPT.replace('{% block guidance %}{% endblock %}', '')
    for document_type in DocumentType.values:
        templates[TemplateKey.of(document_type, GLOBAL, DEFAULT_LANGUAGE)] = base
    for document_type in _JURISDICTION_SCOPED_TYPES:
        for jurisdiction, guidance in JURISDICTION_GUIDANCE.items():
            templates[TemplateKey.of(document_type, jurisdiction, DEFAULT_LANGUAGE)] = _guidance_template(guidance)
    return templates


def load_override_templates(template_dir: str | Path | None) -> dict[TemplateKey, str]:
    """Read ``<type>__<jurisdiction>__<language>.txt`` files from ``template_dir``."""
    if not template_dir:
        return {}
    directory = Path(template_dir)
    if not directory.is_dir():
        logger.warning('Document template directory %s does not exist', directory)
        return {}

    templates: dict[TemplateKey, str] = {}
    for path in sorted(directory.glob(f'*{OVERRIDE_SUFFIX}')):
        parts = path.stem.split(OVERRIDE_SEPARATOR)
        if len(parts) != 3 or not all(parts):
            logger.warning('Ignoring document template with unexpected name: %s', path.name)
            continue
        templates[TemplateKey.of(*parts)] = path.read_text(encoding='utf-8')
    return templates


class TemplateCatalog:
    def __init__(self, templates: dict[TemplateKey, str] | None = None, template_dir: str | Path | None = None):
        self.templates = dict(builtin_templates() if templates is None else templates)
        self.templates.update(load_override_templates(template_dir))
        self._engine = Engine(autoescape=False)

    def fallback_chain(self, document_type: str, jurisdiction: str, language: str) -> list[TemplateKey]:
        chain = [
            TemplateKey.of(document_type, jurisdiction, language),
            TemplateKey.of(document_type, GLOBAL, language),
            TemplateKey.of(document_type, GLOBAL, DEFAULT_LANGUAGE),
        ]
        return list(dict.fromkeys(chain))

    def resolve(self, document_type: str, jurisdiction: str, language: str) -> TemplateKey:
        chain = self.fallback_chain(document_type, jurisdiction, language)
        for key in chain:
            if key in self.templates:
                if key != chain[0]:
                    logger.info('No template for %s, falling back to %s', chain[0], key)
                return key
        raise UnsupportedCombination(
            f'No template is available for {document_type} in {jurisdiction} ({language}).',
        )

    def render(self, key: TemplateKey, context: dict) -> str:
        template = self._engine.from_string(self.templates[key])
        return template.render(Context(context, autoescape=self._engine.autoescape))
