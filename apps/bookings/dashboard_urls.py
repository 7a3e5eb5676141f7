"""URL routing for client dashboards."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter  # type: ignore

from .dashboard_views import DashboardViewSet

router = SimpleRouter()
router.register(r"", DashboardViewSet, basename="dashboard")

urlpatterns = router.urls
