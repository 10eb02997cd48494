"""
Management command to issue QR codes from a CSV file.

Each row issues one token; a failing row is reported and skipped without
affecting the others.

Usage:
    python manage.py issue_tokens_from_csv students.csv --kind IDENTITY
    python manage.py issue_tokens_from_csv presets.csv --kind PRESET --operator admin@example.org
"""

from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import User
from apps.tokens.models import TokenKind
from apps.tokens.services import (
    InvalidTokenFileError,
    read_csv_rows,
    issue_tokens_from_rows,
)


class Command(BaseCommand):
    help = 'Issue IDENTITY or PRESET QR codes from a CSV file (one code per row)'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Path to the CSV file')
        parser.add_argument(
            '--kind',
            choices=TokenKind.values,
            default=TokenKind.IDENTITY.value,
            help='Kind of token to issue (default: IDENTITY)',
        )
        parser.add_argument(
            '--operator',
            help='Email of the operator recorded as issuer',
        )

    def handle(self, *args, **options):
        kind = options['kind']

        created_by = None
        if options['operator']:
            try:
                created_by = User.objects.get(email__iexact=options['operator'])
            except User.DoesNotExist:
                raise CommandError(f"Operator {options['operator']} not found")

        try:
            with open(options['path'], 'rb') as source:
                rows = read_csv_rows(source, kind=kind)
        except OSError as e:
            raise CommandError(f"Cannot open {options['path']}: {e}")
        except InvalidTokenFileError as e:
            raise CommandError(str(e))

        result = issue_tokens_from_rows(
            kind=kind,
            rows=rows,
            created_by=created_by,
            first_row_number=2,
        )

        for row in result.rows:
            if row.ok:
                self.stdout.write(f'  row {row.row}: {row.value} {row.redeem_url}')
            else:
                self.stdout.write(
                    self.style.WARNING(f'  row {row.row}: {row.error_code} - {row.error}')
                )

        style = self.style.SUCCESS if result.failed == 0 else self.style.WARNING
        self.stdout.write(
            style(f'\nIssued {result.issued} {kind} code(s), {result.failed} failed.')
        )
