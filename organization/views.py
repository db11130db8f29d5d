import logging
from datetime import timedelta

from django.contrib.auth import authenticate
from django.contrib.auth.models import Group, User
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.forms.models import model_to_dict
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from blood import serializers
from blood.auth import ROLE_ORGANIZATION, api_auth_required, issue_token
from blood.constants import ORGANIZATION_GROUP, REQUEST_ACTIVE, REQUEST_CLOSED
from blood.services import inventory as inventory_service
from blood.services import notifications as notification_service
from blood.tasks import dispatch_emergency_alerts
from blood.utils.http import (
    error_response,
    form_error_response,
    invalid_json_response,
    message_response,
    parse_json_body,
)
from donor.models import Donor
from . import forms, models, services

logger = logging.getLogger(__name__)

ANALYTICS_WINDOW_DAYS = 7
RECENT_ACTIVITY_LIMIT = 10
DONOR_SEARCH_LIMIT = 10


def _current_org(request):
    return get_object_or_404(models.Organization.objects.select_related('user'), pk=request.auth.subject_id)


def _login_payload(org, status=200):
    token = issue_token(org.user, ROLE_ORGANIZATION, org.pk)
    user = serializers.organization(org)
    user['role'] = ROLE_ORGANIZATION
    return JsonResponse({'token': token, 'user': user}, status=status)


@csrf_exempt
@require_POST
def register_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.OrganizationRegistrationForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    data = form.cleaned_data
    with transaction.atomic():
        user = User.objects.create_user(username=data['email'], email=data['email'], password=data['password'])
        org_group, _ = Group.objects.get_or_create(name=ORGANIZATION_GROUP)
        org_group.user_set.add(user)
        org = models.Organization.objects.create(
            user=user,
            name=data['name'],
            phone=data.get('phone') or '',
            license_number=data['license_number'],
            type=data['type'],
            state=data.get('state') or '',
            district=data.get('district') or '',
            city=data.get('city') or '',
            address=data.get('address') or '',
        )
    logger.info("Registered organization %s (%s)", org.pk, org.name)
    return _login_payload(org, status=201)


@csrf_exempt
@require_POST
def login_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.OrganizationLoginForm(payload)
    if not form.is_valid():
        return error_response('Invalid credentials.')

    user = User.objects.filter(email__iexact=form.cleaned_data['email']).first()
    if user is not None:
        user = authenticate(request, username=user.username, password=form.cleaned_data['password'])
    if user is None or not user.groups.filter(name=ORGANIZATION_GROUP).exists() or not hasattr(user, 'organization'):
        return error_response('Invalid credentials.')
    return _login_payload(user.organization)


@require_http_methods(['GET', 'PUT'])
@api_auth_required(ROLE_ORGANIZATION)
def profile_view(request):
    org = _current_org(request)
    if request.method == 'GET':
        return JsonResponse(serializers.organization(org))

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    fields = forms.OrganizationProfileForm.Meta.fields
    data = model_to_dict(org, fields=fields)
    data.update({name: payload[name] for name in fields if name in payload})
    form = forms.OrganizationProfileForm(data, instance=org)
    if not form.is_valid():
        return form_error_response(form)
    form.save()
    return message_response('Profile updated', organization=serializers.organization(org))


@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def stats_view(request):
    org = _current_org(request)
    inventory = list(org.inventory.all())
    return JsonResponse({
        'total_units': sum(item.units for item in inventory),
        'active_requests': org.emergency_requests.filter(status=REQUEST_ACTIVE).count(),
        'verified_count': org.verifications.filter(status='Verified').count(),
        'member_count': org.members.count(),
        'low_stock_count': len(inventory_service.low_stock(inventory)),
        'inventory_breakdown': [serializers.inventory_item(item) for item in inventory],
    })


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def inventory_view(request):
    org = _current_org(request)
    return JsonResponse({'inventory': [serializers.inventory_item(item) for item in org.inventory.all()]})


@require_http_methods(['POST', 'PUT'])
@api_auth_required(ROLE_ORGANIZATION)
def inventory_update_view(request):
    org = _current_org(request)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.InventorySetForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    item = services.set_inventory(
        org,
        form.cleaned_data['blood_group'],
        form.cleaned_data['units'],
        form.cleaned_data.get('min_threshold'),
    )
    return message_response('Inventory updated', item=serializers.inventory_item(item))


@require_POST
@api_auth_required(ROLE_ORGANIZATION)
def inventory_adjust_view(request):
    org = _current_org(request)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.InventoryAdjustForm(payload)
    if not form.is_valid():
        return form_error_response(form)
    item = services.adjust_inventory(org, form.cleaned_data['blood_group'], form.cleaned_data['delta'])
    return message_response('Inventory updated', item=serializers.inventory_item(item))


@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def inventory_alerts_view(request):
    org = _current_org(request)
    low = inventory_service.low_stock(org.inventory.all())
    return JsonResponse({'alerts': [serializers.inventory_item(item) for item in low]})


# ---------------------------------------------------------------------------
# Emergency requests
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def requests_view(request):
    org = _current_org(request)
    return JsonResponse({'requests': [serializers.emergency_request(row) for row in org.emergency_requests.all()]})


@require_POST
@api_auth_required(ROLE_ORGANIZATION)
def request_create_view(request):
    org = _current_org(request)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.EmergencyRequestForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    with transaction.atomic():
        emergency = form.save(commit=False)
        emergency.organization = org
        emergency.save()
        donors = notification_service.broadcast_emergency(emergency)
        services.add_org_log(
            org,
            services.ACTION_EMERGENCY,
            emergency.blood_group,
            f"Emergency request for {emergency.units_required} units of {emergency.blood_group}",
            {'request_id': emergency.pk, 'notified': len(donors)},
        )
        transaction.on_commit(lambda: dispatch_emergency_alerts(emergency, donors))

    return JsonResponse(
        {
            'message': 'Emergency request created',
            'request': serializers.emergency_request(emergency),
            'notified': len(donors),
        },
        status=201,
    )


@require_http_methods(['PUT', 'PATCH'])
@api_auth_required(ROLE_ORGANIZATION)
def request_status_view(request, pk):
    org = _current_org(request)
    emergency = get_object_or_404(models.EmergencyRequest, pk=pk, organization=org)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.RequestStatusForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    status = form.cleaned_data['status'].strip().capitalize()
    if status != REQUEST_CLOSED:
        return error_response('Requests can only move from Active to Closed.')
    if not emergency.is_active:
        return error_response('Request is already closed.')

    with transaction.atomic():
        emergency.close()
        cleared = notification_service.clear_emergency_notifications(emergency)
    logger.info("Closed emergency request %s; cleared %s notification(s)", emergency.pk, cleared)
    return message_response('Request status updated', request=serializers.emergency_request(emergency))


# ---------------------------------------------------------------------------
# Donors
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def donor_search_view(request):
    query = (request.GET.get('query') or '').strip()
    if not query:
        return JsonResponse({'donors': []})
    donors = (
        Donor.objects.select_related('user')
        .filter(Q(user__email__icontains=query) | Q(phone__icontains=query) | Q(full_name__icontains=query))
        .order_by('full_name', 'id')[:DONOR_SEARCH_LIMIT]
    )
    results = []
    for donor in donors:
        row = serializers.donor_summary(donor)
        row['donor_tag'] = donor.donor_tag
        row['availability'] = 'Available' if donor.eligibility.is_eligible else 'Unavailable'
        results.append(row)
    return JsonResponse({'donors': results})


@require_POST
@api_auth_required(ROLE_ORGANIZATION)
def verify_donor_view(request):
    org = _current_org(request)
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.VerifyDonorForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    donor = get_object_or_404(Donor, pk=form.cleaned_data['donor_id'])
    try:
        services.verify_donor(org, donor, form.cleaned_data.get('notes') or '')
    except services.DonorUnavailable as exc:
        return error_response(str(exc))
    return message_response('Donor verified and donation recorded')


@require_http_methods(['GET', 'POST'])
@api_auth_required(ROLE_ORGANIZATION)
def donor_reports_view(request, donor_id):
    org = _current_org(request)
    donor = get_object_or_404(Donor, pk=donor_id)

    if request.method == 'GET':
        reports = models.MedicalReport.objects.filter(donor=donor).select_related('organization__user', 'donor__user')
        return JsonResponse({'reports': [serializers.medical_report(row) for row in reports]})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.MedicalReportForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    is_donation = form.cleaned_data.get('isDonation', False)
    try:
        report = services.record_medical_report(org, donor, form.report_data(), is_donation=is_donation)
    except services.DonorUnavailable as exc:
        return error_response(str(exc))

    message = 'Donation recorded and donor status updated' if is_donation else 'Clinical record created'
    return JsonResponse({'message': message, 'report': serializers.medical_report(report)}, status=201)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@require_http_methods(['GET', 'POST'])
@api_auth_required(ROLE_ORGANIZATION)
def members_view(request):
    org = _current_org(request)
    if request.method == 'GET':
        rows = org.members.select_related('donor__user')
        return JsonResponse({'members': [serializers.member(row) for row in rows]})

    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.MemberForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    donor = get_object_or_404(Donor, pk=form.cleaned_data['donor_id'])
    role = form.cleaned_data.get('role') or 'Member'
    try:
        with transaction.atomic():
            models.OrganizationMember.objects.create(organization=org, donor=donor, role=role)
    except IntegrityError:
        return error_response('Already a member')
    services.add_org_log(org, services.ACTION_MEMBER_ADD, donor.get_name, f"Added {donor.get_name} as {role}")
    return message_response('Member added successfully', status=201)


@require_http_methods(['DELETE'])
@api_auth_required(ROLE_ORGANIZATION)
def member_remove_view(request, donor_id):
    org = _current_org(request)
    membership = get_object_or_404(models.OrganizationMember.objects.select_related('donor'), organization=org, donor_id=donor_id)
    name = membership.donor.get_name
    membership.delete()
    services.add_org_log(org, services.ACTION_MEMBER_REMOVE, name, f"Removed {name} from organization")
    return message_response('Member removed successfully')


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------

@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def history_view(request):
    org = _current_org(request)
    return JsonResponse({'logs': [serializers.org_log(row) for row in org.logs.all()]})


def _daily_counts(queryset, field):
    rows = (
        queryset.annotate(day=TruncDate(field))
        .values('day')
        .annotate(count=Count('id'))
        .order_by('day')
    )
    return [{'date': row['day'], 'count': row['count']} for row in rows]


@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def analytics_view(request):
    org = _current_org(request)
    since = timezone.now() - timedelta(days=ANALYTICS_WINDOW_DAYS)
    return JsonResponse({
        'verifications': _daily_counts(org.verifications.filter(verified_at__gte=since), 'verified_at'),
        'requests': _daily_counts(org.emergency_requests.filter(created_at__gte=since), 'created_at'),
        'units_collected': org.donations.filter(date__gte=since.date()).aggregate(total=Sum('units'))['total'] or 0,
    })


@require_GET
@api_auth_required(ROLE_ORGANIZATION)
def recent_activity_view(request):
    org = _current_org(request)
    verifications = org.verifications.select_related('donor__user').order_by('-verified_at')[:RECENT_ACTIVITY_LIMIT]
    emergencies = org.emergency_requests.order_by('-created_at')[:RECENT_ACTIVITY_LIMIT]
    items = [
        {'type': 'Verification', 'title': row.donor.get_name, 'timestamp': row.verified_at}
        for row in verifications
    ] + [
        {'type': 'Emergency', 'title': row.blood_group, 'timestamp': row.created_at}
        for row in emergencies
    ]
    items.sort(key=lambda item: item['timestamp'], reverse=True)
    return JsonResponse({'activity': items[:RECENT_ACTIVITY_LIMIT]})
