import io
import os
import pytest
from decimal import Decimal
from apps.ledger.models import Donor, Donation
from apps.ledger.services import (
    InvalidAmountError,
    InvalidDonorDetailsError,
    GroupNotFoundError,
)
from apps.tokens.models import (
    Token,
    TokenKind,
    RetiredTokenValue,
    IdentityBinding,
    PresetBinding,
)
from apps.tokens.services import (
    issue_identity_token,
    issue_preset_token,
    build_redeem_url,
    extract_token_value,
    validate_scan,
    ResolvedIdentity,
    ResolvedPreset,
    set_token_active,
    delete_token,
    get_token,
    list_tokens,
    read_csv_rows,
    issue_tokens_from_rows,
    TokenNotFoundError,
    TokenInactiveError,
    TokenKindMismatchError,
    TokenGenerationError,
    InvalidTokenFileError,
    TokenImageNotFoundError,
    image_file_path,
)
from apps.tokens.services import token_issuance
from apps.tokens.services.token_validation import TOKEN_VALUE_PATTERN


@pytest.fixture(autouse=True)
def redeem_base_url(settings):
    settings.QR_REDEEM_BASE_URL = 'https://scan.example.org/'


# =============================================================================
# Issuance Tests
# =============================================================================

@pytest.mark.django_db
class TestIssueIdentityToken:

    def test_creates_donor_and_token(self, operator):
        issued = issue_identity_token(
            name='Chani',
            class_name='Class 3A',
            grade='Grade 3',
            cohort='2025',
            created_by=operator,
        )

        token = issued.token
        assert token.kind == TokenKind.IDENTITY
        assert token.is_active is True
        assert token.donor.name == 'Chani'
        assert token.created_by == operator
        assert TOKEN_VALUE_PATTERN.fullmatch(token.value)
        assert issued.redeem_url == f'https://scan.example.org/redeemQR/{token.value}'
        assert issued.image_ref == ''

    def test_binding_is_identity(self, operator):
        issued = issue_identity_token(name='Chani', class_name='Class 3A', grade='Grade 3')

        assert issued.token.as_binding() == IdentityBinding(donor_id=issued.token.donor_id)

    def test_second_issue_reuses_donor(self, donor):
        first = issue_identity_token(
            name='Chani', class_name='Class 3A', grade='Grade 3', cohort='2025'
        )
        second = issue_identity_token(
            name='Chani', class_name='Class 3A', grade='Grade 3', cohort='2025'
        )

        assert first.token.donor_id == donor.id
        assert second.token.donor_id == donor.id
        assert first.value != second.value
        first.token.refresh_from_db()
        assert first.token.is_active is True
        assert Donor.objects.count() == 1

    def test_missing_details_creates_nothing(self, db):
        with pytest.raises(InvalidDonorDetailsError):
            issue_identity_token(name='Chani', class_name='', grade='Grade 3')

        assert Donor.objects.count() == 0
        assert Token.objects.count() == 0


@pytest.mark.django_db
class TestIssuePresetToken:

    def test_fund_preset(self, fund):
        issued = issue_preset_token(group_id=fund.id, amount='18', label='Chai')

        token = issued.token
        assert token.kind == TokenKind.PRESET
        assert token.amount == Decimal('18.00')
        assert token.as_binding() == PresetBinding(
            fund_group_id=fund.id, amount=Decimal('18.00'), label='Chai'
        )
        assert issued.redeem_url == f'https://scan.example.org/redeemQR/preset/{token.value}'

    def test_fund_requires_amount(self, fund):
        with pytest.raises(InvalidAmountError):
            issue_preset_token(group_id=fund.id)

        assert Token.objects.count() == 0

    @pytest.mark.parametrize('amount', ['0', '-5', 'five', '1.999'])
    def test_fund_rejects_invalid_amount(self, fund, amount):
        with pytest.raises(InvalidAmountError):
            issue_preset_token(group_id=fund.id, amount=amount)

    def test_volunteer_without_amount(self, volunteer_group):
        issued = issue_preset_token(group_id=volunteer_group.id, label='Lev Shulamis')

        assert issued.token.amount is None
        assert issued.token.fund_group == volunteer_group

    @pytest.mark.parametrize('amount', ['0', '0.00', 0, ''])
    def test_volunteer_with_zero_amount(self, volunteer_group, amount):
        issued = issue_preset_token(group_id=volunteer_group.id, amount=amount)

        assert issued.token.amount is None
        assert issued.token.as_binding() == PresetBinding(
            fund_group_id=volunteer_group.id, amount=None, label=''
        )

    def test_volunteer_with_invalid_amount(self, volunteer_group):
        with pytest.raises(InvalidAmountError):
            issue_preset_token(group_id=volunteer_group.id, amount='-1')

    def test_unknown_group(self, db):
        with pytest.raises(GroupNotFoundError):
            issue_preset_token(group_id='00000000-0000-0000-0000-000000000000', amount='5')


@pytest.mark.django_db
class TestTokenValueGeneration:

    def test_collision_is_retried(self, monkeypatch, identity_token, fund):
        values = iter([identity_token.value, 'fresh-value-0001'])
        monkeypatch.setattr(token_issuance, 'generate_token_value', lambda: next(values))

        issued = issue_preset_token(group_id=fund.id, amount='5')

        assert issued.value == 'fresh-value-0001'

    def test_retired_value_is_never_reissued(self, monkeypatch, fund):
        RetiredTokenValue.objects.create(value='old-value-0001', kind=TokenKind.PRESET)
        values = iter(['old-value-0001', 'new-value-0002'])
        monkeypatch.setattr(token_issuance, 'generate_token_value', lambda: next(values))

        issued = issue_preset_token(group_id=fund.id, amount='5')

        assert issued.value == 'new-value-0002'

    def test_gives_up_after_retries(self, monkeypatch, identity_token, fund):
        monkeypatch.setattr(token_issuance, 'generate_token_value', lambda: identity_token.value)

        with pytest.raises(TokenGenerationError):
            issue_preset_token(group_id=fund.id, amount='5')

        assert Token.objects.count() == 1


@pytest.mark.django_db
class TestQrRendering:

    def test_image_written_when_enabled(self, settings, tmp_path, db):
        settings.QR_RENDER_IMAGES = True
        settings.MEDIA_ROOT = str(tmp_path)

        issued = issue_identity_token(name='Chani Levy', class_name='Class 3A', grade='Grade 3')

        token = Token.objects.get(value=issued.value)
        assert token.image_path.startswith('qr_codes/identity/chani-levy_')
        assert token.image_path.endswith('.png')
        assert os.path.exists(os.path.join(str(tmp_path), token.image_path))
        assert issued.image_ref == f'/api/tokens/{token.value}/image/'
        assert image_file_path(token=token) == os.path.realpath(os.path.join(str(tmp_path), token.image_path))

    def test_render_failure_keeps_token(self, settings, monkeypatch, fund):
        settings.QR_RENDER_IMAGES = True

        def broken(**kwargs):
            raise OSError('disk full')
        monkeypatch.setattr(token_issuance, 'render_token_image', broken)

        issued = issue_preset_token(group_id=fund.id, amount='5')

        assert Token.objects.filter(value=issued.value).exists()
        assert issued.image_ref == ''

    def test_missing_image_file(self, settings, tmp_path, preset_token):
        settings.MEDIA_ROOT = str(tmp_path)

        with pytest.raises(TokenImageNotFoundError):
            image_file_path(token=preset_token)

        preset_token.image_path = 'qr_codes/preset/gone.png'
        with pytest.raises(TokenImageNotFoundError):
            image_file_path(token=preset_token)

        preset_token.image_path = '../outside.png'
        (tmp_path.parent / 'outside.png').write_bytes(b'png')
        with pytest.raises(TokenImageNotFoundError):
            image_file_path(token=preset_token)

    def test_redeem_url_kinds(self):
        assert build_redeem_url(value='abcd', kind=TokenKind.IDENTITY) == (
            'https://scan.example.org/redeemQR/abcd'
        )
        assert build_redeem_url(value='abcd', kind=TokenKind.PRESET) == (
            'https://scan.example.org/redeemQR/preset/abcd'
        )


# =============================================================================
# Validation Tests
# =============================================================================

class TestExtractTokenValue:

    @pytest.mark.parametrize('raw, expected', [
        ('abcd1234', 'abcd1234'),
        ('  abcd1234\r\n', 'abcd1234'),
        ('https://scan.example.org/redeemQR/abcd1234', 'abcd1234'),
        ('https://scan.example.org/redeemQR/preset/abcd1234/', 'abcd1234'),
        ('/redeemQR/abc_-99', 'abc_-99'),
        ('https://scan.example.org/redeem?token=abcd1234', 'abcd1234'),
    ])
    def test_extracts_value(self, raw, expected):
        assert extract_token_value(raw) == expected

    @pytest.mark.parametrize('raw', [
        '', None, 'abc', 'has space', 'https://scan.example.org/', 'drop;table', 'x' * 65,
        'http://[garbled/abcd1234',
    ])
    def test_rejects_malformed(self, raw):
        with pytest.raises(TokenNotFoundError):
            extract_token_value(raw)


@pytest.mark.django_db
class TestValidateScan:

    def test_identity_resolves_donor(self, identity_token, donor):
        resolved = validate_scan(raw_value=identity_token.value, expected_kind=TokenKind.IDENTITY)

        assert isinstance(resolved, ResolvedIdentity)
        assert resolved.donor == donor
        assert resolved.kind == TokenKind.IDENTITY

    def test_identity_from_redeem_url(self, identity_token, donor):
        raw = f'https://scan.example.org/redeemQR/{identity_token.value}\n'

        resolved = validate_scan(raw_value=raw)

        assert resolved.donor == donor

    def test_preset_resolves_fund_and_amount(self, preset_token, fund):
        resolved = validate_scan(raw_value=preset_token.value, expected_kind=TokenKind.PRESET)

        assert isinstance(resolved, ResolvedPreset)
        assert resolved.fund_group == fund
        assert resolved.amount == Decimal('5.00')
        assert resolved.label == 'Tzedaka $5'

    def test_unknown_token(self, db):
        with pytest.raises(TokenNotFoundError) as exc_info:
            validate_scan(raw_value='does-not-exist')

        assert exc_info.value.code == 'token_not_found'

    def test_inactive_token(self, identity_token):
        identity_token.is_active = False
        identity_token.save()

        with pytest.raises(TokenInactiveError):
            validate_scan(raw_value=identity_token.value)

    def test_kind_mismatch_names_expected_kind(self, preset_token):
        with pytest.raises(TokenKindMismatchError) as exc_info:
            validate_scan(raw_value=preset_token.value, expected_kind=TokenKind.IDENTITY)

        assert str(exc_info.value) == 'Expected an IDENTITY code but scanned a PRESET code.'
        assert exc_info.value.expected == TokenKind.IDENTITY

    def test_identity_where_preset_expected(self, identity_token):
        with pytest.raises(TokenKindMismatchError) as exc_info:
            validate_scan(raw_value=identity_token.value, expected_kind=TokenKind.PRESET)

        assert str(exc_info.value) == 'Expected a PRESET code but scanned an IDENTITY code.'

    def test_validation_has_no_side_effects(self, identity_token):
        validate_scan(raw_value=identity_token.value)

        assert Donation.objects.count() == 0


# =============================================================================
# Management Tests
# =============================================================================

@pytest.mark.django_db
class TestSetTokenActive:

    def test_deactivate_and_reactivate(self, identity_token, donor):
        set_token_active(value=identity_token.value, is_active=False)
        identity_token.refresh_from_db()
        assert identity_token.is_active is False

        token = set_token_active(value=identity_token.value, is_active=True)
        assert token.is_active is True
        assert token.donor_id == donor.id

    def test_unknown_token(self, db):
        with pytest.raises(TokenNotFoundError):
            set_token_active(value='missing-token', is_active=False)


@pytest.mark.django_db
class TestDeleteToken:

    def test_sole_identity_token_removes_donor(self, identity_token, donor):
        deletion = delete_token(value=identity_token.value)

        assert deletion.donor_deleted is True
        assert not Token.objects.filter(value=identity_token.value).exists()
        assert not Donor.objects.filter(id=donor.id).exists()
        assert RetiredTokenValue.objects.filter(value=identity_token.value).exists()

    def test_donor_with_donations_is_kept(self, identity_token, donor, fund):
        Donation.objects.create(donor=donor, group=fund, amount=Decimal('5.00'))

        deletion = delete_token(value=identity_token.value)

        assert deletion.donor_deleted is False
        assert deletion.donor_kept_reason == 'donor has donations'
        assert Donor.objects.filter(id=donor.id).exists()
        assert Donation.objects.count() == 1

    def test_donor_with_other_token_is_kept(self, identity_token, donor):
        Token.objects.create(value='chani-second-0009', kind=TokenKind.IDENTITY, donor=donor)

        deletion = delete_token(value=identity_token.value)

        assert deletion.donor_deleted is False
        assert Donor.objects.filter(id=donor.id).exists()

    def test_preset_token_keeps_group(self, preset_token, fund):
        deletion = delete_token(value=preset_token.value)

        assert deletion.kind == TokenKind.PRESET
        assert deletion.donor_deleted is False
        fund.refresh_from_db()

    def test_deleted_token_no_longer_validates(self, identity_token):
        delete_token(value=identity_token.value)

        with pytest.raises(TokenNotFoundError):
            validate_scan(raw_value=identity_token.value)

    def test_unknown_token(self, db):
        with pytest.raises(TokenNotFoundError):
            delete_token(value='missing-token')


@pytest.mark.django_db
class TestListTokens:

    def test_filters(self, identity_token, preset_token, volunteer_token):
        assert set(list_tokens(kind=TokenKind.PRESET)) == {preset_token, volunteer_token}

        identity_token.is_active = False
        identity_token.save()
        assert list(list_tokens(is_active=False)) == [identity_token]
        assert list(list_tokens(search='chani')) == [identity_token]

    def test_get_token(self, preset_token):
        assert get_token(value=preset_token.value) == preset_token


# =============================================================================
# Bulk Issuance Tests
# =============================================================================

@pytest.mark.django_db
class TestBulkIssuance:

    def test_reads_csv_with_bom(self):
        source = io.BytesIO('\ufeffName,Class,Grade\nChani,Class 3A,Grade 3\n'.encode('utf-8'))

        rows = read_csv_rows(source, kind=TokenKind.IDENTITY)

        assert rows == [{'name': 'Chani', 'class': 'Class 3A', 'grade': 'Grade 3'}]

    def test_missing_columns(self):
        source = io.BytesIO(b'Name,Grade\nChani,Grade 3\n')

        with pytest.raises(InvalidTokenFileError) as exc_info:
            read_csv_rows(source, kind=TokenKind.IDENTITY)

        assert 'Class' in str(exc_info.value)

    def test_empty_file(self):
        with pytest.raises(InvalidTokenFileError):
            read_csv_rows(io.BytesIO(b''), kind=TokenKind.PRESET)

    def test_bad_row_does_not_abort_batch(self):
        rows = [
            {'Name': 'Chani', 'Class': 'Class 3A', 'Grade': 'Grade 3'},
            {'Name': '', 'Class': 'Class 3A', 'Grade': 'Grade 3'},
            {'Name': '', 'Class': '', 'Grade': ''},
            {'Name': 'Rivka', 'Class': 'Class 4B', 'Grade': 'Grade 4', 'Cohort': '2025'},
        ]

        result = issue_tokens_from_rows(kind=TokenKind.IDENTITY, rows=rows, first_row_number=2)

        assert result.issued == 2
        assert result.failed == 1
        failed = [row for row in result.rows if not row.ok][0]
        assert failed.row == 3
        assert failed.error_code == 'invalid_donor_details'
        assert Token.objects.count() == 2

    def test_preset_rows_by_group_name(self, fund, volunteer_group):
        rows = [
            {'group': 'tzedaka', 'amount': '5', 'label': 'Five'},
            {'group': 'Lev Shulamis', 'amount': '', 'label': ''},
            {'group': 'Unknown', 'amount': '5'},
            {'group': 'Tzedaka', 'amount': '-2'},
        ]

        result = issue_tokens_from_rows(kind=TokenKind.PRESET, rows=rows)

        assert [row.ok for row in result.rows] == [True, True, False, False]
        assert [row.error_code for row in result.rows[2:]] == ['group_not_found', 'invalid_amount']
        assert Token.objects.get(fund_group=fund).amount == Decimal('5.00')
        assert Token.objects.get(fund_group=volunteer_group).amount is None
