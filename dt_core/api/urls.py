# backend/dt_core/api/urls.py
from __future__ import annotations

from rest_framework.routers import DefaultRouter

from dt_core.matching.api.views import ClientSearchViewSet, TestMatchViewSet
from dt_core.results.api.views import DrugTestResultViewSet

router = DefaultRouter()

router.register(r"clients", ClientSearchViewSet, basename="clients")
router.register(r"drug-tests/matches", TestMatchViewSet, basename="drug-test-matches")
router.register(r"drug-tests/results", DrugTestResultViewSet, basename="drug-test-results")

urlpatterns = router.urls
