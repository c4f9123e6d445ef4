"""
Cases app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Authorization is never decided here.  Domain exceptions raised by the
services are turned into responses by
``core.domain.exception_handler.domain_exception_handler``.

ViewSets
--------
- ``CaseViewSet`` — the single ViewSet for all case endpoints.  Custom
  @action methods cover workflow actions and sub-resources.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    AnswerSerializer,
    AssignShaykhSerializer,
    CancelSerializer,
    CaseCreateSerializer,
    CaseDetailSerializer,
    CaseFilterSerializer,
    CaseListSerializer,
    CaseStatusLogSerializer,
    CaseTransitionSerializer,
    CertificateUploadSerializer,
    CompleteSerializer,
    FeedbackCreateSerializer,
    FeedbackEntrySerializer,
    MarriageCertificateSerializer,
    MeetingCreateSerializer,
    MeetingPartitionSerializer,
    MeetingSerializer,
    MeetingUpdateSerializer,
    ReviewCommentSerializer,
    ShaykhNotesSerializer,
)
from .services import (
    CaseCertificateService,
    CaseCreationService,
    CaseFeedbackService,
    CaseMeetingService,
    CaseQueryService,
    CaseWorkflowService,
)

_ACTION_RESPONSES = {
    200: OpenApiResponse(response=CaseDetailSerializer, description="Action applied; updated case."),
    400: OpenApiResponse(description="Payload validation error."),
    403: OpenApiResponse(description="Actor lacks the required role or relationship."),
    404: OpenApiResponse(description="Case not found."),
    409: OpenApiResponse(description="Action not legal from the current status."),
}


class CaseViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the cases app.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined; cases cannot be edited or deleted directly.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``.  Role and relationship
    checks are enforced by ``cases.workflow.policy`` inside the service
    layer — never in the view.
    """

    permission_classes = [IsAuthenticated]

    # ── Helpers ──────────────────────────────────────────────────────

    def _case_response(self, request: Request, case_id) -> Response:
        case = CaseQueryService.reload(case_id)
        serializer = CaseDetailSerializer(case, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    # ── Standard endpoints ────────────────────────────────────────────

    @extend_schema(
        summary="List cases",
        description="Cases visible to the authenticated user (admin: all; shaykh: assigned and own; user: own).",
        parameters=[
            OpenApiParameter(name="case_type", type=str, location=OpenApiParameter.QUERY, description="fatwa, marriage or reconciliation."),
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by status."),
        ],
        responses={200: CaseListSerializer(many=True)},
        tags=["Cases"],
    )
    def list(self, request: Request) -> Response:
        """GET /api/cases/"""
        filter_serializer = CaseFilterSerializer(data=request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        qs = CaseQueryService.get_filtered_queryset(
            request.user, filter_serializer.validated_data,
        )
        return Response(CaseListSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Submit a new case",
        request=CaseCreateSerializer,
        responses={
            201: OpenApiResponse(response=CaseDetailSerializer, description="Case created in pending status."),
            400: OpenApiResponse(description="Validation error in case_type or details."),
        },
        tags=["Cases"],
    )
    def create(self, request: Request) -> Response:
        """POST /api/cases/"""
        serializer = CaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        case = CaseCreationService.create_case(serializer.validated_data, request.user)
        out = CaseDetailSerializer(case, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve case details",
        responses={
            200: CaseDetailSerializer,
            404: OpenApiResponse(description="Case not found or not visible."),
        },
        tags=["Cases"],
    )
    def retrieve(self, request: Request, pk=None) -> Response:
        """GET /api/cases/{id}/"""
        case = CaseQueryService.get_case_detail(request.user, pk)
        serializer = CaseDetailSerializer(case, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)

    # ── Workflow @actions ─────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="assign")
    @extend_schema(
        summary="Assign a shaykh",
        description="Admin only, case must be pending.",
        request=AssignShaykhSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def assign(self, request: Request, pk=None) -> Response:
        serializer = AssignShaykhSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.assign(pk, request.user, serializer.validated_data.get("shaykh_id"))
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="answer")
    @extend_schema(
        summary="Answer a fatwa",
        description="Assigned shaykh only, case must be assigned.",
        request=AnswerSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def answer(self, request: Request, pk=None) -> Response:
        serializer = AnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.answer(pk, request.user, serializer.validated_data["answer"])
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="approve")
    @extend_schema(
        summary="Approve an answer",
        request=ReviewCommentSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def approve(self, request: Request, pk=None) -> Response:
        serializer = ReviewCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.approve(pk, request.user, serializer.validated_data["comment"])
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="unapprove")
    @extend_schema(
        summary="Unapprove an answer",
        description="Discards the answer and returns the fatwa to the assigned shaykh.",
        request=ReviewCommentSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def unapprove(self, request: Request, pk=None) -> Response:
        serializer = ReviewCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.unapprove(pk, request.user, serializer.validated_data["comment"])
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="complete")
    @extend_schema(
        summary="Complete a case",
        request=CompleteSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def complete(self, request: Request, pk=None) -> Response:
        serializer = CompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        CaseWorkflowService.complete(
            pk, request.user, data["outcome"] or None, data["outcome_details"],
        )
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="cancel")
    @extend_schema(
        summary="Cancel a case",
        request=CancelSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def cancel(self, request: Request, pk=None) -> Response:
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.cancel(pk, request.user, serializer.validated_data["reason"])
        return self._case_response(request, pk)

    @action(detail=True, methods=["put"], url_path="notes")
    @extend_schema(
        summary="Set private shaykh notes",
        description="Overwrites the notes. Visible to admins and the assigned shaykh only.",
        request=ShaykhNotesSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def notes(self, request: Request, pk=None) -> Response:
        serializer = ShaykhNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseFeedbackService.set_shaykh_notes(pk, request.user, serializer.validated_data["notes"])
        return self._case_response(request, pk)

    @action(detail=True, methods=["post"], url_path="transition")
    @extend_schema(
        summary="Apply any workflow action",
        description="Generic gateway: {action, payload}. Same rules as the named endpoints.",
        request=CaseTransitionSerializer,
        responses=_ACTION_RESPONSES,
        tags=["Cases – Workflow"],
    )
    def transition(self, request: Request, pk=None) -> Response:
        serializer = CaseTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        CaseWorkflowService.perform_action(
            pk,
            serializer.validated_data["action"],
            request.user,
            serializer.validated_data["payload"],
        )
        return self._case_response(request, pk)

    # ── Sub-resource @actions ─────────────────────────────────────────

    @action(detail=True, methods=["get", "post"], url_path="meetings")
    @extend_schema(
        summary="List or schedule meetings",
        description="GET returns {upcoming, past}. POST schedules a new meeting.",
        request=MeetingCreateSerializer,
        responses={
            200: MeetingPartitionSerializer,
            201: MeetingSerializer,
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Permission denied."),
            409: OpenApiResponse(description="Case is closed."),
        },
        tags=["Cases – Meetings"],
    )
    def meetings(self, request: Request, pk=None) -> Response:
        if request.method == "GET":
            split = CaseMeetingService.list_partitioned(request.user, pk)
            return Response(MeetingPartitionSerializer(split).data, status=status.HTTP_200_OK)

        serializer = MeetingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        meeting = CaseMeetingService.schedule(pk, request.user, serializer.validated_data)
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_201_CREATED)

    @action(
        detail=True,
        methods=["patch"],
        url_path=r"meetings/(?P<meeting_pk>[^/.]+)",
    )
    @extend_schema(
        summary="Update a meeting",
        description="Record a status change (completed, cancelled, rescheduled) or edit details.",
        request=MeetingUpdateSerializer,
        responses={200: MeetingSerializer},
        tags=["Cases – Meetings"],
    )
    def update_meeting(self, request: Request, pk=None, meeting_pk=None) -> Response:
        serializer = MeetingUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        meeting = CaseMeetingService.update(
            pk, request.user, meeting_pk, serializer.validated_data,
        )
        return Response(MeetingSerializer(meeting).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get", "post"], url_path="feedback")
    @extend_schema(
        summary="List or add feedback",
        request=FeedbackCreateSerializer,
        responses={200: FeedbackEntrySerializer(many=True), 201: FeedbackEntrySerializer},
        tags=["Cases – Feedback"],
    )
    def feedback(self, request: Request, pk=None) -> Response:
        if request.method == "GET":
            entries = CaseFeedbackService.list_feedback(request.user, pk)
            return Response(FeedbackEntrySerializer(entries, many=True).data)

        serializer = FeedbackCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = CaseFeedbackService.add_feedback(
            pk, request.user, serializer.validated_data["comment"],
        )
        return Response(FeedbackEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="status-log")
    @extend_schema(
        summary="Case audit trail",
        responses={200: CaseStatusLogSerializer(many=True)},
        tags=["Cases"],
    )
    def status_log(self, request: Request, pk=None) -> Response:
        logs = CaseQueryService.get_status_log(request.user, pk)
        return Response(CaseStatusLogSerializer(logs, many=True).data)

    @action(
        detail=True,
        methods=["get", "put"],
        url_path="certificate",
        parser_classes=[MultiPartParser, FormParser],
    )
    @extend_schema(
        summary="Marriage certificate",
        description=(
            "GET returns the uploaded certificate and its download URL. "
            "PUT uploads it (multipart, file part ``certificate``): admin or "
            "assigned shaykh, certificate application, assigned or in-progress."
        ),
        request=CertificateUploadSerializer,
        responses={
            200: MarriageCertificateSerializer,
            201: MarriageCertificateSerializer,
            400: OpenApiResponse(description="Missing number or file."),
            403: OpenApiResponse(description="Not the assigned shaykh."),
            404: OpenApiResponse(description="Case or certificate not found."),
            409: OpenApiResponse(description="Wrong application type or status, or already uploaded."),
        },
        tags=["Cases – Certificates"],
    )
    def certificate(self, request: Request, pk=None) -> Response:
        if request.method == "GET":
            certificate = CaseCertificateService.get_certificate(request.user, pk)
            out = MarriageCertificateSerializer(certificate, context={"request": request})
            return Response(out.data, status=status.HTTP_200_OK)

        serializer = CertificateUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        certificate = CaseCertificateService.upload(
            pk,
            request.user,
            serializer.validated_data["certificate_number"],
            request.FILES.get("certificate"),
        )
        out = MarriageCertificateSerializer(certificate, context={"request": request})
        return Response(out.data, status=status.HTTP_201_CREATED)
