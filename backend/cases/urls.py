"""
Cases app URL configuration.

All routes are registered under the ``/api/`` prefix.

Route Hierarchy
---------------
  /api/cases/                               → list / create
  /api/cases/{id}/                          → retrieve

  ── Workflow @actions ───────────────────────────────────────────
  POST /api/cases/{id}/assign/              → admin assigns a shaykh
  POST /api/cases/{id}/answer/              → assigned shaykh answers (fatwa)
  POST /api/cases/{id}/approve/             → admin approves answer (fatwa)
  POST /api/cases/{id}/unapprove/           → admin sends answer back (fatwa)
  POST /api/cases/{id}/complete/            → resolved / unresolved
  POST /api/cases/{id}/cancel/
  PUT  /api/cases/{id}/notes/               → private shaykh notes
  POST /api/cases/{id}/transition/          → generic {action, payload}

  ── Sub-resource @actions ───────────────────────────────────────
  GET  /api/cases/{id}/meetings/            → {upcoming, past}
  POST /api/cases/{id}/meetings/
  PATCH /api/cases/{id}/meetings/{meeting_pk}/
  GET  /api/cases/{id}/feedback/
  POST /api/cases/{id}/feedback/
  GET  /api/cases/{id}/status-log/
"""

from rest_framework.routers import DefaultRouter

from .views import CaseViewSet

router = DefaultRouter()
router.register(
    prefix=r"cases",
    viewset=CaseViewSet,
    basename="case",
)

urlpatterns = router.urls
