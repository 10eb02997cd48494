"""
Permission classes shared by the scanner-facing apps.

Every token, ledger and scanner endpoint is restricted to operators with
the ADMIN role.
"""
from rest_framework.permissions import BasePermission


class IsScannerOperator(BasePermission):
    """
    Allows access only to authenticated ADMIN operators.

    Usage:
        @permission_classes([IsAuthenticated, IsScannerOperator])
        def validate_scan(request):
            ...
    """

    message = 'Admins only.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_scanner_operator)
