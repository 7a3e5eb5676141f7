"""URL routing for the vendor catalogue."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter  # type: ignore

from .views import VendorViewSet

# SimpleRouter: an empty prefix would put DefaultRouter's API root over the list route
router = SimpleRouter()
router.register(r"", VendorViewSet, basename="vendor")

urlpatterns = router.urls
