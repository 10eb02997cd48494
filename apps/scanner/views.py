from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsScannerOperator
from apps.ledger.services import LedgerServiceError
from apps.tokens.services import TokenServiceError, validate_scan

from .serializers import (
    ResolvedTokenSerializer,
    DonationSummarySerializer,
    ParticipationSummarySerializer,
    SessionSnapshotSerializer,
    OutcomeSerializer,
    ValidateScanSerializer,
    DonationCreateSerializer,
    ParticipationCreateSerializer,
    PresetRedemptionSerializer,
    SessionOpenSerializer,
    ScanSerializer,
    SubmitSerializer,
)
from .services import (
    ScannerServiceError,
    DonationSummary,
    resolve_donor_ref,
    record_donation,
    record_participation,
    redeem_preset_token,
    delete_participation,
    open_session,
    get_session,
    close_session,
    list_sessions,
)

SCANNER_PERMISSIONS = [IsAuthenticated, IsScannerOperator]

DOMAIN_ERRORS = (LedgerServiceError, TokenServiceError, ScannerServiceError)

ERROR_STATUS = {
    'token_not_found': status.HTTP_404_NOT_FOUND,
    'donor_not_found': status.HTTP_404_NOT_FOUND,
    'group_not_found': status.HTTP_404_NOT_FOUND,
    'participation_not_found': status.HTTP_404_NOT_FOUND,
    'session_not_found': status.HTTP_404_NOT_FOUND,
    'token_inactive': status.HTTP_409_CONFLICT,
    'token_kind_mismatch': status.HTTP_409_CONFLICT,
    'duplicate_participation': status.HTTP_409_CONFLICT,
    'scan_in_progress': status.HTTP_409_CONFLICT,
    'no_pending_donor': status.HTTP_409_CONFLICT,
    'ledger_unavailable': status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _error(e):
    """Translate a domain exception into an error response."""
    return Response(
        {'error': str(e), 'code': e.code},
        status=ERROR_STATUS.get(e.code, status.HTTP_400_BAD_REQUEST),
    )


def _summary_response(summary):
    if isinstance(summary, DonationSummary):
        data = {'type': 'donation', **DonationSummarySerializer(summary).data}
    else:
        data = {'type': 'participation', **ParticipationSummarySerializer(summary).data}
    return Response(data, status=status.HTTP_201_CREATED)


# =============================================================================
# Validation & Redemption
# =============================================================================

@extend_schema(
    request=ValidateScanSerializer,
    responses={200: ResolvedTokenSerializer},
    description="Resolve a scanned code without recording anything.",
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def validate(request):
    """Validate a raw scan."""
    serializer = ValidateScanSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        resolved = validate_scan(
            raw_value=serializer.validated_data['raw_value'],
            expected_kind=serializer.validated_data.get('expected_kind'),
        )
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(ResolvedTokenSerializer(resolved).data)


@extend_schema(
    request=DonationCreateSerializer,
    responses={201: DonationSummarySerializer},
    description="Record a donation. Repeated calls record repeated donations.",
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def donation_create(request):
    """Record a donation for a donor id or identity code."""
    serializer = DonationCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        donor_id = resolve_donor_ref(data['donor_ref'])
        summary = record_donation(
            donor_id=donor_id,
            group_id=data['group_id'],
            amount=data['amount'],
            recorded_by=request.user,
        )
    except DOMAIN_ERRORS as e:
        return _error(e)

    return _summary_response(summary)


@extend_schema(
    request=ParticipationCreateSerializer,
    responses={201: ParticipationSummarySerializer},
    description="Record a volunteer participation. A second record for the same donor and group is rejected.",
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def participation_create(request):
    """Record a participation for a donor id or identity code."""
    serializer = ParticipationCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        donor_id = resolve_donor_ref(data['donor_ref'])
        summary = record_participation(
            donor_id=donor_id,
            group_id=data['group_id'],
            recorded_by=request.user,
        )
    except DOMAIN_ERRORS as e:
        return _error(e)

    return _summary_response(summary)


@extend_schema(
    responses={204: None},
    description="Delete a mistaken volunteer record.",
    tags=['scanner'],
)
@api_view(['DELETE'])
@permission_classes(SCANNER_PERMISSIONS)
def participation_delete(request, participation_id):
    try:
        delete_participation(participation_id=participation_id)
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    request=PresetRedemptionSerializer,
    responses={201: DonationSummarySerializer},
    description=(
        "Apply a PRESET code to a donor: a donation of the preset amount, "
        "or a participation for volunteer presets."
    ),
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def preset_redemption(request):
    serializer = PresetRedemptionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        donor_id = resolve_donor_ref(data['donor_ref'])
        summary = redeem_preset_token(
            preset_value=data['preset_value'],
            donor_id=donor_id,
            recorded_by=request.user,
        )
    except DOMAIN_ERRORS as e:
        return _error(e)

    return _summary_response(summary)


# =============================================================================
# Scan Sessions
# =============================================================================

@extend_schema(
    methods=['GET'],
    responses={200: SessionSnapshotSerializer(many=True)},
    description="List the operator's open scan sessions.",
    tags=['scanner'],
)
@extend_schema(
    methods=['POST'],
    request=SessionOpenSerializer,
    responses={201: SessionSnapshotSerializer},
    description="Open a scan session in a mode. PRESET modes take the fund or volunteer group and amount up front.",
    tags=['scanner'],
)
@api_view(['GET', 'POST'])
@permission_classes(SCANNER_PERMISSIONS)
def session_list(request):
    if request.method == 'GET':
        sessions = list_sessions(operator=request.user)
        return Response({
            'data': SessionSnapshotSerializer([s.snapshot() for s in sessions], many=True).data
        })

    serializer = SessionOpenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        session = open_session(operator=request.user, **serializer.validated_data)
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(
        SessionSnapshotSerializer(session.snapshot()).data,
        status=status.HTTP_201_CREATED,
    )


@extend_schema(
    methods=['GET'],
    responses={200: SessionSnapshotSerializer},
    description="Current state of a scan session.",
    tags=['scanner'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None},
    description="Close a scan session and discard its state.",
    tags=['scanner'],
)
@api_view(['GET', 'DELETE'])
@permission_classes(SCANNER_PERMISSIONS)
def session_detail(request, session_id):
    try:
        if request.method == 'DELETE':
            close_session(session_id=session_id, operator=request.user)
            return Response(status=status.HTTP_204_NO_CONTENT)

        session = get_session(session_id=session_id, operator=request.user)
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(SessionSnapshotSerializer(session.snapshot()).data)


@extend_schema(
    request=ScanSerializer,
    responses={200: OutcomeSerializer},
    description=(
        "Feed one scan into the session. Rejections are returned as a "
        "REJECTED outcome with an error code."
    ),
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def session_scan(request, session_id):
    serializer = ScanSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        session = get_session(session_id=session_id, operator=request.user)
        outcome = session.handle_scan(serializer.validated_data['raw_value'])
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(OutcomeSerializer(outcome).data)


@extend_schema(
    request=SubmitSerializer,
    responses={200: OutcomeSerializer},
    description="Submit amount and fund for the donor scanned in a NORMAL session.",
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def session_submit(request, session_id):
    serializer = SubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        session = get_session(session_id=session_id, operator=request.user)
        outcome = session.submit(**serializer.validated_data)
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(OutcomeSerializer(outcome).data)


@extend_schema(
    request=None,
    responses={200: OutcomeSerializer},
    description="Discard partial progress. Nothing is recorded.",
    tags=['scanner'],
)
@api_view(['POST'])
@permission_classes(SCANNER_PERMISSIONS)
def session_cancel(request, session_id):
    try:
        session = get_session(session_id=session_id, operator=request.user)
        outcome = session.cancel()
    except DOMAIN_ERRORS as e:
        return _error(e)

    return Response(OutcomeSerializer(outcome).data)
