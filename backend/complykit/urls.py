from django.urls import path

from complykit import views

urlpatterns = [
    path('auth/register', views.RegisterAPIView.as_view(), name='auth-register-api'),
    path('auth/login', views.LoginAPIView.as_view(), name='auth-login-api'),
    path('auth/logout', views.LogoutAPIView.as_view(), name='auth-logout-api'),
    path('user/me', views.UserMeAPIView.as_view(), name='user-me-api'),
    path('scan', views.ScanAPIView.as_view(), name='scan-api'),
    path('scan/<uuid:scan_id>', views.ScanDetailAPIView.as_view(), name='scan-detail-api'),
    path('documents', views.DocumentListAPIView.as_view(), name='document-list-api'),
    path('documents/types', views.DocumentTypesAPIView.as_view(), name='document-types-api'),
    path('documents/languages', views.DocumentLanguagesAPIView.as_view(), name='document-languages-api'),
    path('documents/generate', views.DocumentGenerateAPIView.as_view(), name='document-generate-api'),
    path('documents/<int:document_id>', views.DocumentDetailAPIView.as_view(), name='document-detail-api'),
    path('documents/<int:document_id>/pdf', views.DocumentPdfAPIView.as_view(), name='document-pdf-api'),
    path('payments/checkout', views.CheckoutAPIView.as_view(), name='payments-checkout-api'),
    path('payments/webhook', views.PaymentWebhookAPIView.as_view(), name='payments-webhook-api'),
    path('health', views.HealthAPIView.as_view(), name='health-api'),
]
