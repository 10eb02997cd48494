from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsScannerOperator

from .serializers import (
    DonorSerializer,
    GroupSerializer,
    GroupFilterSerializer,
    DonorFilterSerializer,
)
from .services import list_groups, list_donors


class DonorPagination(PageNumberPagination):
    """Custom pagination for the donor directory."""
    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200


@extend_schema(
    parameters=[OpenApiParameter('type', str, description='FUND or VOLUNTEER')],
    responses={200: GroupSerializer(many=True)},
    description="List funds and volunteer groups for scanner selectors.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def group_list(request):
    """Group directory."""
    filter_serializer = GroupFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    groups = list_groups(group_type=filter_serializer.validated_data.get('type'))
    return Response({'data': GroupSerializer(groups, many=True).data})


@extend_schema(
    parameters=[
        OpenApiParameter('search', str, description='Name or class contains'),
        OpenApiParameter('grade', str, description='Exact grade'),
    ],
    responses={200: DonorSerializer(many=True)},
    description="Paginated donor directory for display.",
    tags=['ledger'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsScannerOperator])
def donor_list(request):
    """Donor directory."""
    filter_serializer = DonorFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)
    params = filter_serializer.validated_data

    donors = list_donors(search=params.get('search'), grade=params.get('grade'))

    paginator = DonorPagination()
    page = paginator.paginate_queryset(donors, request)
    return paginator.get_paginated_response(DonorSerializer(page, many=True).data)
