from django.conf import settings
from rest_framework.throttling import ScopedRateThrottle


class ComplyKitScopedRateThrottle(ScopedRateThrottle):
    def allow_request(self, request, view):
        if getattr(settings, 'API_DISABLE_THROTTLING', False):
            return True
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):
        account = getattr(request, 'complykit_account', None)
        if account is not None:
            ident = f'account-{account.pk}'
        else:
            ident = self.get_ident(request)
        return self.cache_format % {'scope': self.scope, 'ident': ident}
