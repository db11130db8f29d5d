import logging

from django.db.models import Q
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from donor.models import Donor
from . import forms, models, serializers
from .services import seekers as seeker_service
from .services.donor_recommender import recommend_donors
from .utils.http import error_response, form_error_response, invalid_json_response, parse_json_body

logger = logging.getLogger(__name__)

PUBLIC_DONOR_LIMIT = 200
FEATURED_DONOR_LIMIT = 8


def _available_donors():
    return Donor.objects.eligible().select_related('user').order_by('-created_at', '-id')


@require_GET
def donors_view(request):
    """Public donor directory: available donors only, filtered by the query string."""

    queryset = _available_donors()
    blood_type = request.GET.get('blood_type')
    state = request.GET.get('state')
    district = request.GET.get('district')
    city = request.GET.get('city')
    if blood_type:
        queryset = queryset.filter(blood_type=blood_type)
    if state:
        queryset = queryset.filter(state__iexact=state)
    if district:
        queryset = queryset.filter(district__iexact=district)
    if city:
        queryset = queryset.filter(Q(city__icontains=city) | Q(district__icontains=city))
    return JsonResponse({'donors': [serializers.donor_summary(donor) for donor in queryset[:PUBLIC_DONOR_LIMIT]]})


@require_GET
def featured_donors_view(request):
    donors = []
    for donor in _available_donors()[:FEATURED_DONOR_LIMIT]:
        row = serializers.donor_summary(donor)
        # No contact details on featured cards
        row.pop('email')
        row.pop('phone')
        donors.append(row)
    return JsonResponse({'donors': donors})


def _last_submission(email, phone):
    return (
        models.Seeker.objects.filter(Q(email__iexact=email) | Q(phone=phone))
        .order_by('-created_at')
        .values_list('created_at', flat=True)
        .first()
    )


@csrf_exempt
@require_POST
def seekers_view(request):
    payload = parse_json_body(request)
    if payload is None:
        return invalid_json_response()
    form = forms.SeekerForm(payload)
    if not form.is_valid():
        return form_error_response(form)

    now = timezone.now()
    last = _last_submission(form.cleaned_data['email'], form.cleaned_data['phone'])
    remaining = seeker_service.cooldown_remaining(last, now)
    if remaining is not None:
        return error_response(
            f'Please wait {remaining} seconds before submitting another request.',
            status=429,
            retry_after=remaining,
        )

    seeker = form.save(commit=False)
    seeker.created_at = now
    seeker.save()
    logger.info("Seeker request %s saved for %s", seeker.pk, seeker.blood_type)
    return JsonResponse({'id': seeker.pk, 'message': 'Request saved successfully'}, status=201)


@require_GET
def smart_match_view(request):
    form = forms.SmartMatchForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    data = form.cleaned_data
    matches = recommend_donors(
        data['blood_type'],
        lat=data.get('lat'),
        lng=data.get('lng'),
        city=data.get('city') or None,
        district=data.get('district') or None,
    )
    return JsonResponse({'matches': [match.as_dict() for match in matches]})
