import logging
from datetime import timedelta

from django.contrib.auth import authenticate
from django.contrib.auth.models import Group, User
from django.db import transaction
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from blood import serializers
from blood.auth import ROLE_DONOR, api_auth_required, issue_token
from blood.constants import DONOR_GROUP, REQUEST_ACTIVE
from blood.models import Notification
from blood.services import chatbot, password_reset
from blood.services.eligibility import compute_eligibility, get_recovery_days, next_eligible_from
from blood.services.google import GoogleAuthError, fetch_google_profile
from blood.tasks import send_password_reset_email
from blood.utils.http import (
    error_response,
    form_error_response,
    invalid_json_response,
    message_response,
    parse_json_body,
)
from blood.utils.validators import classify_password
from organization.models import EmergencyRequest, MedicalReport, OrganizationMember
from . import forms, models

logger = logging.getLogger(__name__)

LIVES_PER_DONATION = 3


def _current_donor(request):
    return get_object_or_404(models.Donor.objects.select_related('user'), pk=request.auth.subject_id)


def _login_payload(donor, status=200):
    token = issue_token(donor.user, ROLE_DONOR, donor.pk)
    return JsonResponse({'token': token, 'user': serializers.donor_profile(donor)}, status=status)


def _milestone(total_donations: int) -> str:
    if total_donations >= 10:
        return 'Gold'
    if total_donations >= 5:
        return 'Silver'
    return 'Bronze'


def _merged(instance, payload, fields):
    """Current field values overlaid with the payload, so PUT can send a subset."""

    data = {name: value for name, value in model_to_dict(instance, fields=fields).items() if value is not None}
    data.update({name: payload[name] for name in fields if name in payload})
    return data


def _unique_username(seed: str) -> str:
    base = ''.join(ch for ch in seed if ch.isalnum() or ch == '_')[:24] or 'donor'
    if not base[0].isalpha():
        base = f'd{base}'
    candidate, suffix = base, 1
    while User.objects.filter(username__iexact=candidate).exists():
        suffix += 1
        candidate = f'{base}{suffix}'
    return candidate


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@csrf_exempt
@require_POST
def register_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.DonorRegistrationForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    data = form.cleaned_data
    with transaction.atomic():
        user = User.objects.create_user(username=data['username'], email=data['email'], password=data['password'])
        donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
        donor_group.user_set.add(user)
        donor = models.Donor.objects.create(
            user=user,
            full_name=data['full_name'],
            blood_type=data.get('blood_type') or '',
            date_of_birth=data.get('dob'),
            phone=data.get('phone') or '',
            gender=data.get('gender') or '',
            latitude=data.get('latitude'),
            longitude=data.get('longitude'),
        )
    logger.info("Registered donor %s (%s)", donor.donor_tag, user.username)
    return _login_payload(donor, status=201)


@csrf_exempt
@require_POST
def login_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.LoginForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    identifier = form.cleaned_data['username']
    user = User.objects.filter(username__iexact=identifier).first()
    if user is None:
        user = User.objects.filter(email__iexact=identifier).first()
    if user is not None:
        user = authenticate(request, username=user.username, password=form.cleaned_data['password'])
    if user is None or not user.groups.filter(name=DONOR_GROUP).exists() or not hasattr(user, 'donor'):
        return error_response('Invalid username or password.')
    return _login_payload(user.donor)


@require_GET
def check_username_view(request):
    username = (request.GET.get('username') or '').strip()
    if not username:
        return error_response('Username is required.')
    return JsonResponse({'available': not User.objects.filter(username__iexact=username).exists()})


@csrf_exempt
@require_POST
def forgot_password_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.ForgotPasswordForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    user = User.objects.filter(email__iexact=form.cleaned_data['email']).first()
    if user is None:
        return error_response('Email not found.', status=404)
    reset = password_reset.issue_code(user)
    transaction.on_commit(lambda: send_password_reset_email.delay(reset.pk))
    return message_response('Reset code sent to your email.')


def _reset_target(form):
    return User.objects.filter(email__iexact=form.cleaned_data['email']).first()


@csrf_exempt
@require_POST
def verify_reset_code_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.VerifyResetCodeForm(payload)
    if not form.is_valid():
        return error_response('Invalid or expired code.')
    user = _reset_target(form)
    if user is None or password_reset.find_valid_code(user, form.cleaned_data['code']) is None:
        return error_response('Invalid or expired code.')
    return message_response('Code verified.', valid=True)


@csrf_exempt
@require_POST
def reset_password_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.ResetPasswordForm(payload)
    if not form.is_valid():
        if 'newPassword' in form.errors:
            return form_error_response(form)
        return error_response('Invalid or expired request.')
    user = _reset_target(form)
    if user is None or not password_reset.reset_password(user, form.cleaned_data['code'], form.cleaned_data['newPassword']):
        return error_response('Invalid or expired request.')
    return message_response('Password reset successfully.')


@csrf_exempt
@require_POST
def google_auth_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.GoogleAuthForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    try:
        profile = fetch_google_profile(form.cleaned_data['credential'])
    except GoogleAuthError as exc:
        return error_response(str(exc), status=401)

    donor = models.Donor.objects.select_related('user').filter(google_id=profile.subject).first()
    if donor is None:
        donor = models.Donor.objects.select_related('user').filter(user__email__iexact=profile.email).first()
        if donor is not None:
            donor.google_id = profile.subject
            donor.save(update_fields=['google_id'])
    if donor is None:
        if User.objects.filter(email__iexact=profile.email).exists():
            return error_response('This email belongs to a non-donor account.')
        with transaction.atomic():
            user = User(username=_unique_username(profile.email.split('@')[0]), email=profile.email)
            user.set_unusable_password()
            user.save()
            donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
            donor_group.user_set.add(user)
            donor = models.Donor.objects.create(user=user, full_name=profile.name[:50], google_id=profile.subject)
        logger.info("Created donor %s from Google sign-in", donor.donor_tag)
    return _login_payload(donor)


@require_POST
@api_auth_required(ROLE_DONOR)
def complete_profile_view(request):
    donor = _current_donor(request)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.CompleteProfileForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    data = form.cleaned_data
    donor.blood_type = data['bloodGroup']
    donor.gender = data['gender']
    donor.phone = data['phoneNumber']
    donor.state = data['state']
    donor.district = data['district']
    donor.city = data['city']
    if data.get('dob'):
        donor.date_of_birth = data['dob']
    if data.get('latitude') is not None and data.get('longitude') is not None:
        donor.latitude = data['latitude']
        donor.longitude = data['longitude']
    donor.save()
    return message_response('Profile updated successfully.', user=serializers.donor_profile(donor))


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def password_strength_view(request):
    if request.method == 'GET':
        password = request.GET.get('password', '')
    else:
        payload = parse_json_body(request)
        if payload is None:
            return invalid_json_response()
        password = str(payload.get('password') or '')
    feedback = classify_password(password)
    return JsonResponse({'strength': feedback.strength, 'message': feedback.message, 'valid': feedback.valid})


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_DONOR)
def stats_view(request):
    donor = _current_donor(request)
    donor.refresh_availability()

    donations = list(models.Donation.objects.for_donor(donor).select_related('organization'))
    result = compute_eligibility(donations)
    reminders = list(donor.reminders.all())
    memberships = list(OrganizationMember.objects.filter(donor=donor).select_related('organization'))
    total = len(donations)

    return JsonResponse({
        'user': serializers.donor_profile(donor),
        'stats': {
            'totalDonations': total,
            'lastDonation': result.last_donation_date,
            'nextEligibleDate': result.next_eligible_date,
            'isEligible': result.is_eligible,
            'countdown': result.countdown.as_dict() if result.countdown else None,
            'activeReminders': len(reminders),
            'membershipCount': len(memberships),
            'unreadNotifications': donor.notifications.filter(is_read=False).count(),
            'livesSaved': total * LIVES_PER_DONATION,
            'milestone': _milestone(total),
            'profileComplete': donor.is_profile_complete,
            'missingFields': donor.missing_profile_fields,
        },
        'donations': [serializers.donation(row) for row in donations],
        'reminders': [serializers.reminder(row) for row in reminders],
        'memberships': [serializers.membership(row) for row in memberships],
    })


@require_http_methods(['GET', 'POST'])
@api_auth_required(ROLE_DONOR)
def donations_view(request):
    donor = _current_donor(request)
    if request.method == 'GET':
        rows = models.Donation.objects.for_donor(donor).select_related('organization')
        return JsonResponse({'donations': [serializers.donation(row) for row in rows]})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.DonationForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    last = compute_eligibility(donor.donations.values_list('date', flat=True)).last_donation_date
    if last is not None and form.cleaned_data['date'] < next_eligible_from(last).date():
        return error_response('You can only donate every 90 days.')

    donation = form.save(commit=False)
    donation.donor = donor
    donation.save()
    return JsonResponse(
        {'message': 'Donation recorded successfully', 'donation': serializers.donation(donation)},
        status=201,
    )


DONATION_FIELDS = forms.DonationForm.Meta.fields


def _within_recovery_of_others(donation, donated_on):
    """True when ``donated_on`` falls inside the recovery window of another donation by the same donor."""

    window = timedelta(days=get_recovery_days())
    others = models.Donation.objects.filter(donor_id=donation.donor_id).exclude(pk=donation.pk)
    return others.filter(date__gt=donated_on - window, date__lt=donated_on + window).exists()


@require_http_methods(['PUT', 'DELETE'])
@api_auth_required(ROLE_DONOR)
def donation_detail_view(request, pk):
    donor = _current_donor(request)
    donation = get_object_or_404(models.Donation, pk=pk, donor=donor)

    if request.method == 'DELETE':
        donation.delete()
        return message_response('Donation deleted')

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.DonationForm(_merged(donation, payload, DONATION_FIELDS), instance=donation)
    if not form.is_valid():
        return form_error_response(form)
    if 'date' in form.changed_data and _within_recovery_of_others(donation, form.cleaned_data['date']):
        return error_response('You can only donate every 90 days.')
    donation = form.save()
    return message_response('Donation updated', donation=serializers.donation(donation))


@require_http_methods(['GET', 'POST'])
@api_auth_required(ROLE_DONOR)
def reminders_view(request):
    donor = _current_donor(request)
    if request.method == 'GET':
        return JsonResponse({'reminders': [serializers.reminder(row) for row in donor.reminders.all()]})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.ReminderForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    reminder = form.save(commit=False)
    reminder.donor = donor
    reminder.save()
    return JsonResponse({'message': 'Reminder added', 'reminder': serializers.reminder(reminder)}, status=201)


@require_http_methods(['PUT', 'DELETE'])
@api_auth_required(ROLE_DONOR)
def reminder_detail_view(request, pk):
    donor = _current_donor(request)
    reminder = get_object_or_404(models.Reminder, pk=pk, donor=donor)

    if request.method == 'DELETE':
        reminder.delete()
        return message_response('Reminder deleted')

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.ReminderForm(_merged(reminder, payload, forms.ReminderForm.Meta.fields), instance=reminder)
    if not form.is_valid():
        return form_error_response(form)
    reminder = form.save()
    return message_response('Reminder updated', reminder=serializers.reminder(reminder))


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

PROFILE_FIELD_MAP = {
    'full_name': 'full_name',
    'dob': 'date_of_birth',
    'phone': 'phone',
    'blood_type': 'blood_type',
    'gender': 'gender',
    'state': 'state',
    'district': 'district',
    'city': 'city',
    'latitude': 'latitude',
    'longitude': 'longitude',
}


@require_http_methods(['GET', 'PUT'])
@api_auth_required(ROLE_DONOR)
def profile_view(request):
    donor = _current_donor(request)
    if request.method == 'GET':
        return JsonResponse({'user': serializers.donor_profile(donor)})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.DonorProfileForm(payload, donor=donor)
    if not form.is_valid():
        return form_error_response(form)

    changes = form.changed_values()
    user = donor.user
    user_fields = []
    if 'email' in changes:
        user.email = changes['email']
        user_fields.append('email')
    if 'username' in changes:
        user.username = changes['username']
        user_fields.append('username')
    if 'password' in changes:
        user.set_password(changes['password'])
        user_fields.append('password')

    donor_fields = []
    for key, attr in PROFILE_FIELD_MAP.items():
        if key in changes:
            setattr(donor, attr, changes[key])
            donor_fields.append(attr)

    with transaction.atomic():
        if user_fields:
            user.save(update_fields=user_fields)
        if donor_fields:
            donor.save(update_fields=donor_fields)
    return message_response('Profile updated successfully', user=serializers.donor_profile(donor))


@csrf_exempt
@require_http_methods(['POST', 'DELETE'])
@api_auth_required(ROLE_DONOR)
def profile_picture_view(request):
    donor = _current_donor(request)

    if request.method == 'DELETE':
        if donor.profile_pic:
            donor.profile_pic.delete(save=False)
        donor.profile_pic = None
        donor.save(update_fields=['profile_pic'])
        return message_response('Profile picture removed')

    form = forms.ProfilePictureForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_error_response(form)
    if donor.profile_pic:
        donor.profile_pic.delete(save=False)
    donor.profile_pic = form.cleaned_data['profile_picture']
    donor.save(update_fields=['profile_pic'])
    return message_response('Profile picture updated', profile_picture=donor.profile_pic.url)


# ---------------------------------------------------------------------------
# Feeds
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_DONOR)
def reports_view(request):
    donor = _current_donor(request)
    reports = MedicalReport.objects.filter(donor=donor).select_related('organization__user', 'donor__user')
    return JsonResponse({'reports': [serializers.medical_report(row) for row in reports]})


@require_GET
@api_auth_required(ROLE_DONOR)
def urgent_needs_view(request):
    donor = _current_donor(request)
    if not donor.blood_type or not donor.city:
        return JsonResponse({'requests': []})
    requests_qs = EmergencyRequest.objects.filter(
        status=REQUEST_ACTIVE,
        blood_group=donor.blood_type,
        organization__city__iexact=donor.city,
    ).select_related('organization')
    return JsonResponse({'requests': [serializers.emergency_request(row, include_org=True) for row in requests_qs]})


@require_GET
@api_auth_required(ROLE_DONOR)
def notifications_view(request):
    donor = _current_donor(request)
    rows = donor.notifications.all()[:50]
    return JsonResponse({
        'notifications': [serializers.notification(row) for row in rows],
        'unread': donor.notifications.filter(is_read=False).count(),
    })


@require_http_methods(['POST', 'PATCH'])
@api_auth_required(ROLE_DONOR)
def notification_read_view(request, pk):
    donor = _current_donor(request)
    updated = Notification.objects.filter(pk=pk, donor=donor).update(is_read=True)
    if not updated:
        return error_response('Notification not found.', status=404)
    return message_response('Notification marked as read')


@require_http_methods(['POST', 'PATCH'])
@api_auth_required(ROLE_DONOR)
def notifications_read_all_view(request):
    donor = _current_donor(request)
    count = donor.notifications.filter(is_read=False).update(is_read=True)
    return message_response('All notifications marked as read', updated=count)


@require_http_methods(['DELETE'])
@api_auth_required(ROLE_DONOR)
def notifications_clear_view(request):
    donor = _current_donor(request)
    deleted, _ = donor.notifications.all().delete()
    return message_response('All notifications cleared', deleted=deleted)


@require_http_methods(['DELETE'])
@api_auth_required(ROLE_DONOR)
def notification_delete_view(request, pk):
    donor = _current_donor(request)
    deleted, _ = Notification.objects.filter(pk=pk, donor=donor).delete()
    if not deleted:
        return error_response('Notification not found.', status=404)
    return message_response('Notification deleted')


@require_POST
@api_auth_required(ROLE_DONOR)
def chat_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    answer = chatbot.reply_to(str(payload.get('message') or ''))
    return JsonResponse({'reply': answer.reply, 'rule': answer.rule_id, 'timestamp': timezone.now()})
