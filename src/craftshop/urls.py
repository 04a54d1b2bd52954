"""URL configuration for Craftshop project."""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.contrib.sitemaps.views import sitemap
from django.urls import include, path

from craftshop.catalog.sitemaps import sitemaps
from craftshop.core.views import health_check

urlpatterns = [
    # Health check
    path("health/", health_check, name="health_check"),

    # Django admin
    path("django-admin/", admin.site.urls),

    path("sitemap.xml", sitemap, {"sitemaps": sitemaps}, name="sitemap"),

    # Admin JSON API
    path("api/admin/", include("craftshop.backoffice.urls", namespace="backoffice")),

    # Public catalog
    path("api/public/", include("craftshop.catalog.urls", namespace="catalog")),

    # Accounts, cart, checkout, orders
    path("api/", include("craftshop.core.urls", namespace="core")),
    path("api/", include("craftshop.store.urls", namespace="store")),
    path("api/", include("craftshop.payments.urls", namespace="payments")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

handler500 = "craftshop.core.http.server_error"
