import logging

from django.conf import settings
from django.http import Http404, HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from complykit.auth import AccountTokenPermission, OptionalAccountPermission
from complykit.auth_service import login, register, revoke_account_sessions
from complykit.documents.assembler import document_type_choices, generate_document, get_document, list_documents
from complykit.documents.templates import SUPPORTED_LANGUAGES
from complykit.exceptions import ComplianceError, InsufficientCredits
from complykit.models import ScanResult
from complykit.payments import create_checkout_session, handle_webhook
from complykit.pdf import PDF_CONTENT_TYPE, pdf_filename, render_document_pdf
from complykit.plans import PLAN_OFFERS
from complykit.serializers import (
    AccountSerializer,
    CheckoutRequestSerializer,
    DocumentGenerateSerializer,
    GeneratedDocumentListSerializer,
    GeneratedDocumentSerializer,
    LoginSerializer,
    RegisterSerializer,
    ScanRequestSerializer,
)
from complykit.services import build_scan_response, run_and_persist_scan

logger = logging.getLogger(__name__)


def _error_response(error: ComplianceError) -> Response:
    payload = {
        'error': error.code,
        'detail': error.message,
    }
    if isinstance(error, InsufficientCredits):
        payload['required'] = error.required
        payload['available'] = error.available
        payload['plans'] = [
            {'planType': offer.plan_type, 'amountCents': offer.amount_cents, 'currency': offer.currency.upper()}
            for offer in PLAN_OFFERS.values()
        ]
    return Response(payload, status=error.http_status)


def _server_error_response(detail: str) -> Response:
    return Response(
        {
            'error': 'server_error',
            'detail': detail,
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def _token_response_payload(account, issued) -> dict:
    expires_in = max(int((issued.expires_at - timezone.now()).total_seconds()), 0)
    return {
        'token_type': 'Bearer',  # nosec B105
        'access_token': issued.access_token,
        'access_token_expires_in': expires_in,
        'access_token_expires_at': issued.expires_at,
        'user': AccountSerializer(account).data,
    }


class HealthAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'status': 'ok', 'timestamp': timezone.now(), 'version': settings.APP_VERSION})


class RegisterAPIView(APIView):
    throttle_scope = 'auth'
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            account, issued = register(**serializer.validated_data)
        except ComplianceError as error:
            return _error_response(error)

        logger.info('Registered account %s', account.pk)
        return Response(_token_response_payload(account, issued), status=status.HTTP_201_CREATED)


class LoginAPIView(APIView):
    throttle_scope = 'auth'
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            account, issued = login(**serializer.validated_data)
        except ComplianceError as error:
            return _error_response(error)

        return Response(_token_response_payload(account, issued), status=status.HTTP_200_OK)


class LogoutAPIView(APIView):
    throttle_scope = 'auth'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def post(self, request):
        revoked = revoke_account_sessions(account_id=request.complykit_account.pk)
        return Response({'ok': True, 'revoked_tokens': revoked}, status=status.HTTP_200_OK)


class UserMeAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def get(self, request):
        return Response(AccountSerializer(request.complykit_account).data, status=status.HTTP_200_OK)


class ScanAPIView(APIView):
    throttle_scope = 'scan'
    authentication_classes = []
    permission_classes = [OptionalAccountPermission]

    def post(self, request):
        serializer = ScanRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            scan, from_cache = run_and_persist_scan(
                serializer.validated_data['url'],
                account=request.complykit_account,
            )
        except ComplianceError as error:
            return _error_response(error)
        except Exception:
            logger.exception('Unexpected scan failure for %s', serializer.validated_data['url'])
            return _server_error_response('Scan service error. Please try again.')

        return Response(build_scan_response(scan, from_cache=from_cache), status=status.HTTP_200_OK)


class ScanDetailAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, scan_id):
        try:
            scan = ScanResult.objects.get(pk=scan_id)
        except ScanResult.DoesNotExist as exc:
            raise Http404('Scan not found.') from exc
        return Response(build_scan_response(scan), status=status.HTTP_200_OK)


class DocumentTypesAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(document_type_choices(), status=status.HTTP_200_OK)


class DocumentLanguagesAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(list(SUPPORTED_LANGUAGES), status=status.HTTP_200_OK)


class DocumentGenerateAPIView(APIView):
    throttle_scope = 'generate'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def post(self, request):
        serializer = DocumentGenerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            document = generate_document(request.complykit_account, serializer.to_request())
        except ComplianceError as error:
            return _error_response(error)
        except Exception:
            logger.exception('Unexpected document generation failure for account %s', request.complykit_account.pk)
            return _server_error_response('Document service error. Please try again.')

        return Response(GeneratedDocumentSerializer(document).data, status=status.HTTP_201_CREATED)


class DocumentListAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def get(self, request):
        documents = list_documents(request.complykit_account)
        return Response(GeneratedDocumentListSerializer(documents, many=True).data, status=status.HTTP_200_OK)


class DocumentDetailAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def get(self, request, document_id: int):
        document = get_document(request.complykit_account, document_id)
        if document is None:
            raise Http404('Document not found.')
        return Response(GeneratedDocumentSerializer(document).data, status=status.HTTP_200_OK)


class DocumentPdfAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def get(self, request, document_id: int):
        document = get_document(request.complykit_account, document_id)
        if document is None:
            raise Http404('Document not found.')

        try:
            pdf_bytes = render_document_pdf(document)
        except ComplianceError as error:
            return _error_response(error)

        response = HttpResponse(pdf_bytes, content_type=PDF_CONTENT_TYPE)
        response['Content-Disposition'] = f'attachment; filename="{pdf_filename(document)}"'
        return response


class CheckoutAPIView(APIView):
    throttle_scope = 'default'
    authentication_classes = []
    permission_classes = [AccountTokenPermission]

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            checkout_url = create_checkout_session(
                request.complykit_account,
                serializer.validated_data['planType'],
                success_url=serializer.validated_data.get('successUrl', ''),
                cancel_url=serializer.validated_data.get('cancelUrl', ''),
            )
        except ComplianceError as error:
            return _error_response(error)

        return Response({'url': checkout_url}, status=status.HTTP_200_OK)


class PaymentWebhookAPIView(APIView):
    throttle_scope = 'webhook'
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        signature = request.headers.get('Stripe-Signature', '')
        try:
            result = handle_webhook(request.body, signature)
        except ComplianceError as error:
            return _error_response(error)
        except Exception:
            logger.exception('Unexpected payment webhook failure')
            return _server_error_response('Webhook processing error.')

        return Response(result, status=status.HTTP_200_OK)
