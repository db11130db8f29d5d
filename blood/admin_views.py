"""Back-office JSON API for superusers.

Every view except :func:`login_view` requires an ``admin`` bearer token.
Deleting a donor or organization deletes its login account, which cascades
to everything it owns.
"""

import logging

from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from django.db.models import Sum
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from donor.models import Donor
from organization.models import EmergencyRequest, InventoryItem, MedicalReport, Organization
from . import forms, models, serializers
from .auth import ROLE_ADMIN, api_auth_required, issue_token
from .constants import REQUEST_ACTIVE
from .services.notifications import broadcast_system
from .utils.http import error_response, form_error_response, invalid_json_response, message_response, parse_json_body

logger = logging.getLogger(__name__)


def _admin_row(user):
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'is_active': user.is_active,
        'created_at': user.date_joined,
        'last_login': user.last_login,
    }


def _admin_donor_row(donor):
    row = serializers.donor_summary(donor)
    row.update({
        'donor_tag': donor.donor_tag,
        'gender': donor.gender,
        'dob': donor.date_of_birth,
        'availability': 'Available' if donor.is_available else 'Unavailable',
        'created_at': donor.created_at,
    })
    return row


def _report_queryset():
    return MedicalReport.objects.select_related('donor__user', 'organization__user')


@csrf_exempt
@require_POST
def login_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.AdminLoginForm(payload)
    if not form.is_valid():
        return error_response('Invalid credentials.', status=401)

    user = authenticate(request, username=form.cleaned_data['username'], password=form.cleaned_data['password'])
    if user is None or not user.is_superuser:
        logger.warning("Failed admin login for %s", form.cleaned_data['username'])
        return error_response('Invalid credentials.', status=401)
    return JsonResponse({'token': issue_token(user, ROLE_ADMIN, user.pk), 'message': 'Login successful'})


@require_GET
@api_auth_required(ROLE_ADMIN)
def stats_view(request):
    return JsonResponse({
        'donors': Donor.objects.count(),
        'organizations': Organization.objects.count(),
        'bloodUnits': InventoryItem.objects.aggregate(total=Sum('units'))['total'] or 0,
        'activeRequests': EmergencyRequest.objects.filter(status=REQUEST_ACTIVE).count(),
        'seekers': models.Seeker.objects.count(),
    })


# ---------------------------------------------------------------------------
# Donors
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ADMIN)
def donors_view(request):
    donors = Donor.objects.select_related('user').order_by('-created_at', '-id')
    return JsonResponse({'donors': [_admin_donor_row(donor) for donor in donors]})


@require_http_methods(['GET', 'DELETE'])
@api_auth_required(ROLE_ADMIN)
def donor_detail_view(request, pk):
    donor = get_object_or_404(Donor.objects.select_related('user'), pk=pk)
    if request.method == 'DELETE':
        logger.info("Admin %s deleted donor %s", request.auth.user_id, donor.donor_tag)
        donor.user.delete()
        return message_response('Donor deleted successfully')

    data = serializers.donor_profile(donor)
    data['donations'] = [serializers.donation(row) for row in donor.donations.select_related('organization')]
    data['reports'] = [serializers.medical_report(row) for row in _report_queryset().filter(donor=donor)]
    return JsonResponse(data)


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ADMIN)
def organizations_view(request):
    orgs = Organization.objects.select_related('user')
    return JsonResponse({'organizations': [serializers.organization(org) for org in orgs]})


@require_http_methods(['GET', 'DELETE'])
@api_auth_required(ROLE_ADMIN)
def organization_detail_view(request, pk):
    org = get_object_or_404(Organization.objects.select_related('user'), pk=pk)
    if request.method == 'DELETE':
        logger.info("Admin %s deleted organization %s", request.auth.user_id, org.pk)
        org.user.delete()
        return message_response('Organization deleted successfully')

    data = serializers.organization(org)
    data['inventory'] = [serializers.inventory_item(row) for row in org.inventory.all()]
    data['members'] = [serializers.member(row) for row in org.members.select_related('donor__user')]
    data['requests'] = [serializers.emergency_request(row) for row in org.emergency_requests.all()]
    return JsonResponse(data)


@require_http_methods(['PUT', 'POST'])
@api_auth_required(ROLE_ADMIN)
def organization_verify_view(request, pk):
    org = get_object_or_404(Organization, pk=pk)
    org.verified = not org.verified
    org.save(update_fields=['verified'])
    return message_response('Organization verification status updated.', verified=org.verified)


# ---------------------------------------------------------------------------
# Inventory, requests and reports
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ADMIN)
def inventory_view(request):
    rows = InventoryItem.objects.select_related('organization').order_by('-last_updated', '-id')
    inventory = []
    for row in rows:
        item = serializers.inventory_item(row)
        item['org_id'] = row.organization_id
        item['org_name'] = row.organization.name
        inventory.append(item)
    return JsonResponse({'inventory': inventory})


@require_GET
@api_auth_required(ROLE_ADMIN)
def requests_view(request):
    rows = EmergencyRequest.objects.select_related('organization')
    return JsonResponse({'requests': [serializers.emergency_request(row, include_org=True) for row in rows]})


@require_GET
@api_auth_required(ROLE_ADMIN)
def reports_view(request):
    return JsonResponse({'reports': [serializers.medical_report(row) for row in _report_queryset()]})


@require_GET
@api_auth_required(ROLE_ADMIN)
def report_detail_view(request, pk):
    report = get_object_or_404(_report_queryset(), pk=pk)
    return JsonResponse(serializers.medical_report(report))


# ---------------------------------------------------------------------------
# Admin accounts
# ---------------------------------------------------------------------------

@require_http_methods(['GET', 'POST'])
@api_auth_required(ROLE_ADMIN)
def admins_view(request):
    if request.method == 'GET':
        admins = User.objects.filter(is_superuser=True).order_by('-date_joined', '-id')
        return JsonResponse({'admins': [_admin_row(user) for user in admins]})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.AdminAccountForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    user = User.objects.create_superuser(
        username=form.cleaned_data['username'],
        email=form.cleaned_data.get('email') or '',
        password=form.cleaned_data['password'],
    )
    logger.info("Admin %s created admin %s", request.auth.user_id, user.username)
    return message_response('Admin added successfully', status=201, admin=_admin_row(user))


@require_http_methods(['PUT', 'POST'])
@api_auth_required(ROLE_ADMIN)
def admin_status_view(request, pk):
    user = get_object_or_404(User, pk=pk, is_superuser=True)
    if user.pk == request.auth.user_id:
        return error_response('You cannot deactivate your own account.')
    user.is_active = not user.is_active
    user.save(update_fields=['is_active'])
    return message_response('Admin status updated', admin=_admin_row(user))


@require_http_methods(['DELETE'])
@api_auth_required(ROLE_ADMIN)
def admin_delete_view(request, pk):
    user = get_object_or_404(User, pk=pk, is_superuser=True)
    if user.pk == request.auth.user_id:
        return error_response('You cannot delete your own account.')
    user.delete()
    return message_response('Admin deleted successfully')


@require_POST
@api_auth_required(ROLE_ADMIN)
def broadcast_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.BroadcastForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    delivered = broadcast_system(form.cleaned_data['title'], form.cleaned_data['message'], form.cleaned_data['audience'])
    return message_response('Broadcast sent successfully', status=201, delivered=delivered)
