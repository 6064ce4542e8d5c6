from __future__ import annotations

from http import HTTPStatus


class ComplianceError(Exception):
    code = 'error'
    http_status = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str, code: str | None = None, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.http_status = int(http_status if http_status is not None else self.http_status)


class InvalidInput(ComplianceError):
    code = 'invalid_input'
    http_status = HTTPStatus.BAD_REQUEST


class InsufficientCredits(ComplianceError):
    code = 'insufficient_credits'
    http_status = HTTPStatus.PAYMENT_REQUIRED

    def __init__(self, message: str = 'No credits available. Please purchase a plan to generate documents.', *, required: int = 1, available: int = 0):
        super().__init__(message)
        self.required = required
        self.available = available


class UnsupportedCombination(ComplianceError):
    code = 'unsupported_combination'
    http_status = HTTPStatus.UNPROCESSABLE_ENTITY


class GenerationFailed(ComplianceError):
    code = 'generation_failed'
    http_status = HTTPStatus.SERVICE_UNAVAILABLE


class GenerationTimeout(GenerationFailed):
    code = 'generation_timeout'


class UpstreamUnavailable(ComplianceError):
    code = 'upstream_unavailable'
    http_status = HTTPStatus.BAD_GATEWAY


class PaymentProviderError(ComplianceError):
    code = 'payment_provider_error'
    http_status = HTTPStatus.BAD_GATEWAY


class WebhookVerificationError(ComplianceError):
    code = 'invalid_signature'
    http_status = HTTPStatus.BAD_REQUEST


class PdfRenderingUnavailable(ComplianceError):
    code = 'pdf_unavailable'
    http_status = HTTPStatus.SERVICE_UNAVAILABLE


class LedgerBusy(ComplianceError):
    code = 'ledger_busy'
    http_status = HTTPStatus.SERVICE_UNAVAILABLE
