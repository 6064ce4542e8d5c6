from rest_framework import serializers

from complykit.documents.assembler import DocumentRequest
from complykit.documents.templates import DEFAULT_LANGUAGE
from complykit.domain_utils import normalize_url
from complykit.exceptions import InvalidInput
from complykit.models import Account, DocumentType, GeneratedDocument, Jurisdiction
from complykit.plans import PLAN_OFFERS


class ScanRequestSerializer(serializers.Serializer):
    url = serializers.CharField(max_length=2048)

    def validate_url(self, value: str) -> str:
        try:
            return normalize_url(value)
        except InvalidInput as exc:
            raise serializers.ValidationError(exc.message) from exc


class DocumentGenerateSerializer(serializers.Serializer):
    documentType = serializers.ChoiceField(choices=DocumentType.choices)
    businessName = serializers.CharField(max_length=255)
    businessType = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    websiteUrl = serializers.CharField(max_length=2048, required=False, allow_blank=True, default='')
    jurisdiction = serializers.ChoiceField(choices=Jurisdiction.choices, required=False, default=Jurisdiction.GLOBAL)
    language = serializers.CharField(max_length=64, required=False, allow_blank=True, default=DEFAULT_LANGUAGE)
    scanId = serializers.UUIDField(required=False, allow_null=True, default=None)
    additionalInfo = serializers.CharField(max_length=4000, required=False, allow_blank=True, default='')

    def validate_businessName(self, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise serializers.ValidationError('Business name is required.')
        return cleaned

    def validate_language(self, value: str) -> str:
        return value.strip() or DEFAULT_LANGUAGE

    def to_request(self) -> DocumentRequest:
        data = self.validated_data
        return DocumentRequest(
            document_type=data['documentType'],
            business_name=data['businessName'],
            business_type=data.get('businessType', ''),
            website_url=data.get('websiteUrl', ''),
            jurisdiction=data.get('jurisdiction', Jurisdiction.GLOBAL),
            language=data.get('language', DEFAULT_LANGUAGE),
            scan_id=data.get('scanId'),
            additional_info=data.get('additionalInfo', ''),
        )


class GeneratedDocumentSerializer(serializers.ModelSerializer):
    documentType = serializers.CharField(source='document_type')
    businessName = serializers.CharField(source='business_name')
    businessType = serializers.CharField(source='business_type')
    websiteUrl = serializers.CharField(source='website_url')
    scanId = serializers.UUIDField(source='scan_id', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = GeneratedDocument
        fields = [
            'id',
            'documentType',
            'title',
            'content',
            'businessName',
            'businessType',
            'websiteUrl',
            'jurisdiction',
            'language',
            'scanId',
            'createdAt',
        ]


class GeneratedDocumentListSerializer(GeneratedDocumentSerializer):
    class Meta(GeneratedDocumentSerializer.Meta):
        fields = [field for field in GeneratedDocumentSerializer.Meta.fields if field != 'content']


class AccountSerializer(serializers.ModelSerializer):
    plan = serializers.SerializerMethodField()
    planExpiresAt = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = Account
        fields = ['id', 'email', 'name', 'plan', 'credits', 'planExpiresAt', 'createdAt']

    def get_plan(self, obj: Account) -> str:
        return str(obj.effective_plan())

    def get_planExpiresAt(self, obj: Account):
        if not obj.has_unlimited_plan() or obj.plan_expires_at is None:
            return None
        return obj.plan_expires_at.isoformat()


class CheckoutRequestSerializer(serializers.Serializer):
    planType = serializers.ChoiceField(choices=sorted(str(plan) for plan in PLAN_OFFERS))
    successUrl = serializers.URLField(max_length=2048, required=False, allow_blank=True, default='')
    cancelUrl = serializers.URLField(max_length=2048, required=False, allow_blank=True, default='')


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(max_length=128, trim_whitespace=False)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    password = serializers.CharField(max_length=128, trim_whitespace=False)
