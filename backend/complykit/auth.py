from __future__ import annotations

from rest_framework.permissions import BasePermission

from complykit.auth_service import get_valid_access_token, mark_access_token_used


def _read_api_token_from_request(request) -> str:
    header_token = (request.headers.get('X-API-Token') or '').strip()
    if header_token:
        return header_token

    auth_header = (request.headers.get('Authorization') or '').strip()
    if auth_header.lower().startswith('bearer '):
        return auth_header[7:].strip()

    return ''


def _attach_account(request) -> bool:
    request.complykit_account = None
    request.complykit_access_token = None

    request_token = _read_api_token_from_request(request)
    if not request_token:
        return False

    access_token = get_valid_access_token(request_token)
    if access_token is None:
        return False

    mark_access_token_used(access_token)
    request.complykit_account = access_token.account
    request.complykit_access_token = access_token
    return True


class AccountTokenPermission(BasePermission):
    message = 'Missing or invalid access token.'

    def has_permission(self, request, view) -> bool:
        return _attach_account(request)


class OptionalAccountPermission(BasePermission):
    """Allows anonymous callers, attaching the account when a valid token is sent."""

    message = 'Invalid access token.'

    def has_permission(self, request, view) -> bool:
        if not _read_api_token_from_request(request):
            request.complykit_account = None
            request.complykit_access_token = None
            return True
        return _attach_account(request)
