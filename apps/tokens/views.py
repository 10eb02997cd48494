from django.http import FileResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsScannerOperator
from apps.ledger.services import (
    GroupNotFoundError,
    InvalidAmountError,
    InvalidDonorDetailsError,
)

from .serializers import (
    TokenSerializer,
    IssuedTokenSerializer,
    IdentityTokenCreateSerializer,
    PresetTokenCreateSerializer,
    TokenActiveSerializer,
    TokenFilterSerializer,
    BulkIssuanceSerializer,
    BulkIssuanceResultSerializer,
    TokenDeletionSerializer,
    serialize_issued,
)
from .services import (
    issue_identity_token,
    issue_preset_token,
    read_csv_rows,
    issue_tokens_from_rows,
    get_token,
    list_tokens,
    set_token_active,
    delete_token,
    image_file_path,
    TokenNotFoundError,
    TokenGenerationError,
    InvalidTokenFileError,
    TokenImageNotFoundError,
)


class TokenPagination(PageNumberPagination):
    """Custom pagination for the QR management list."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


def _error(e, http_status):
    return Response({'error': str(e), 'code': e.code}, status=http_status)


@extend_schema(
    parameters=[
        OpenApiParameter('kind', str, description='IDENTITY or PRESET'),
        OpenApiParameter('is_active', bool, description='Filter by active flag'),
        OpenApiParameter('search', str, description='Donor, group or label contains'),
    ],
    responses={200: TokenSerializer(many=True)},
    description="List issued QR codes.",
    tags=['tokens'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def token_list(request):
    """List tokens with optional filters."""
    filter_serializer = TokenFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)
    params = filter_serializer.validated_data

    tokens = list_tokens(
        kind=params.get('kind'),
        is_active=params.get('is_active'),
        search=params.get('search'),
    )

    paginator = TokenPagination()
    page = paginator.paginate_queryset(tokens, request)
    return paginator.get_paginated_response(TokenSerializer(page, many=True).data)


@extend_schema(
    request=IdentityTokenCreateSerializer,
    responses={201: IssuedTokenSerializer},
    description="Issue an IDENTITY QR code, creating the donor if they are new.",
    tags=['tokens'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def issue_identity(request):
    """Issue an IDENTITY token."""
    serializer = IdentityTokenCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        issued = issue_identity_token(
            **serializer.validated_data,
            created_by=request.user,
        )
    except InvalidDonorDetailsError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)
    except TokenGenerationError as e:
        return _error(e, status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response(serialize_issued(issued), status=status.HTTP_201_CREATED)


@extend_schema(
    request=PresetTokenCreateSerializer,
    responses={201: IssuedTokenSerializer},
    description="Issue a PRESET QR code for a fund and amount, or a volunteer group.",
    tags=['tokens'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def issue_preset(request):
    """Issue a PRESET token."""
    serializer = PresetTokenCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        issued = issue_preset_token(
            **serializer.validated_data,
            created_by=request.user,
        )
    except GroupNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)
    except InvalidAmountError as e:
        return _error(e, status.HTTP_400_BAD_REQUEST)
    except TokenGenerationError as e:
        return _error(e, status.HTTP_503_SERVICE_UNAVAILABLE)

    return Response(serialize_issued(issued), status=status.HTTP_201_CREATED)


@extend_schema(
    request=BulkIssuanceSerializer,
    responses={200: BulkIssuanceResultSerializer},
    description=(
        "Issue one QR code per row from a CSV upload or a JSON list of rows. "
        "Rows are independent; failures are reported per row."
    ),
    tags=['tokens'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsScannerOperator])
@parser_classes([JSONParser, MultiPartParser, FormParser])
def issue_bulk(request):
    """Bulk issuance."""
    serializer = BulkIssuanceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    kind = serializer.validated_data['kind']

    upload = serializer.validated_data.get('file')
    if upload:
        try:
            rows = read_csv_rows(upload, kind=kind)
        except InvalidTokenFileError as e:
            return _error(e, status.HTTP_400_BAD_REQUEST)
        first_row_number = 2
    else:
        rows = serializer.validated_data['rows']
        first_row_number = 1

    result = issue_tokens_from_rows(
        kind=kind,
        rows=rows,
        created_by=request.user,
        first_row_number=first_row_number,
    )

    return Response(BulkIssuanceResultSerializer(result).data)


@extend_schema(
    methods=['GET'],
    responses={200: TokenSerializer},
    description="Get a QR code by value.",
    tags=['tokens'],
)
@extend_schema(
    methods=['DELETE'],
    responses={200: TokenDeletionSerializer},
    description=(
        "Permanently delete a QR code. For IDENTITY codes the donor is removed "
        "only when nothing else references them."
    ),
    tags=['tokens'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def token_detail(request, value):
    """Get or delete a token."""
    try:
        if request.method == 'DELETE':
            deletion = delete_token(value=value)
            return Response(TokenDeletionSerializer(deletion).data)

        token = get_token(value=value)
    except TokenNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    return Response(TokenSerializer(token).data)


@extend_schema(
    request=TokenActiveSerializer,
    responses={200: TokenSerializer},
    description="Enable or disable a QR code without changing what it is bound to.",
    tags=['tokens'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def token_set_active(request, value):
    """Toggle the active flag."""
    serializer = TokenActiveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        token = set_token_active(
            value=value,
            is_active=serializer.validated_data['is_active'],
        )
    except TokenNotFoundError as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    return Response(TokenSerializer(token).data)


@extend_schema(
    responses={(200, 'image/png'): OpenApiTypes.BINARY},
    description="Stream the rendered QR image for printing.",
    tags=['tokens'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def token_image(request, value):
    """Rendered PNG, served to operators only."""
    try:
        token = get_token(value=value)
        path = image_file_path(token=token)
    except (TokenNotFoundError, TokenImageNotFoundError) as e:
        return _error(e, status.HTTP_404_NOT_FOUND)

    return FileResponse(open(path, 'rb'), content_type='image/png', filename=f"{token.value}.png")
