from django.urls import re_path

from tokens.views import (
    BulkDeleteView,
    HealthCheckView,
    TokenDetailView,
    TokenImportView,
    TokenListView,
    WhatsAppImportView,
)

app_name = "tokens"

# Trailing slashes are optional so API clients can POST to /api/tokens directly.
urlpatterns = [
    re_path(r"^tokens/import/whatsapp/?$", WhatsAppImportView.as_view(), name="tokens-import-whatsapp"),
    re_path(r"^tokens/import/?$", TokenImportView.as_view(), name="tokens-import"),
    re_path(r"^tokens/bulk-delete/?$", BulkDeleteView.as_view(), name="tokens-bulk-delete"),
    re_path(r"^tokens/(?P<token_id>[^/]+)/?$", TokenDetailView.as_view(), name="token-detail"),
    re_path(r"^tokens/?$", TokenListView.as_view(), name="token-list"),
    re_path(r"^health/?$", HealthCheckView.as_view(), name="health"),
]
