"""Plain-dict renderings of model rows for ``JsonResponse``."""

from __future__ import annotations


def _decimal(value):
    return float(value) if value is not None else None


def donor_summary(donor) -> dict:
    return {
        'id': donor.id,
        'name': donor.get_name,
        'email': donor.email,
        'phone': donor.phone,
        'blood_group': donor.blood_type,
        'city': donor.city or 'N/A',
        'district': donor.district or 'N/A',
        'state': donor.state or 'N/A',
    }


def donor_profile(donor) -> dict:
    return {
        'id': donor.id,
        'donor_tag': donor.donor_tag,
        'username': donor.username,
        'full_name': donor.full_name,
        'email': donor.email,
        'phone': donor.phone,
        'gender': donor.gender,
        'dob': donor.date_of_birth,
        'blood_type': donor.blood_type,
        'country': donor.country,
        'state': donor.state,
        'district': donor.district,
        'city': donor.city,
        'latitude': _decimal(donor.latitude),
        'longitude': _decimal(donor.longitude),
        'availability': 'Available' if donor.is_available else 'Unavailable',
        'profile_picture': donor.profile_pic.url if donor.has_profile_pic else None,
        'google_id': donor.google_id,
        'profile_complete': donor.is_profile_complete,
        'missing_fields': donor.missing_profile_fields,
        'created_at': donor.created_at,
    }


def donation(row) -> dict:
    return {
        'id': row.id,
        'date': row.date,
        'units': _decimal(row.units),
        'notes': row.notes,
        'hb_level': _decimal(row.hb_level),
        'blood_pressure': row.blood_pressure,
        'pulse_rate': row.pulse_rate,
        'temperature': _decimal(row.temperature),
        'weight': _decimal(row.weight),
        'org_id': row.organization_id,
        'org_name': row.organization.name if row.organization_id else None,
        'created_at': row.created_at,
    }


def reminder(row) -> dict:
    return {
        'id': row.id,
        'reminder_date': row.reminder_date,
        'message': row.message,
        'created_at': row.created_at,
    }


def notification(row) -> dict:
    return {
        'id': row.id,
        'type': row.kind,
        'title': row.title,
        'message': row.message,
        'source_id': row.source_request_id,
        'is_read': row.is_read,
        'created_at': row.created_at,
    }


def organization(org) -> dict:
    return {
        'id': org.id,
        'name': org.name,
        'email': org.email,
        'phone': org.phone,
        'license_number': org.license_number,
        'type': org.type,
        'state': org.state,
        'district': org.district,
        'city': org.city,
        'address': org.address,
        'verified': org.verified,
        'created_at': org.created_at,
    }


def inventory_item(row) -> dict:
    return {
        'id': row.id,
        'blood_group': row.blood_group,
        'units': row.units,
        'min_threshold': row.min_threshold,
        'is_low': row.is_low,
        'last_updated': row.last_updated,
    }


def emergency_request(row, include_org: bool = False) -> dict:
    data = {
        'id': row.id,
        'blood_group': row.blood_group,
        'units_required': row.units_required,
        'urgency_level': row.urgency_level,
        'description': row.description,
        'status': row.status,
        'created_at': row.created_at,
        'closed_at': row.closed_at,
    }
    if include_org:
        data['org_id'] = row.organization_id
        data['org_name'] = row.organization.name
        data['org_city'] = row.organization.city
    return data


def medical_report(row) -> dict:
    org = row.organization
    donor = row.donor
    return {
        'id': row.id,
        'donor_id': donor.id,
        'donor_name': donor.get_name,
        'donor_email': donor.email,
        'donor_phone': donor.phone,
        'org_id': org.id,
        'org_name': org.name,
        'org_city': org.city,
        'org_email': org.email,
        'org_phone': org.phone,
        'org_address': org.address,
        'donation_id': row.donation_id,
        'hb_level': _decimal(row.hb_level),
        'blood_pressure': row.blood_pressure,
        'pulse_rate': row.pulse_rate,
        'temperature': _decimal(row.temperature),
        'weight': _decimal(row.weight),
        'units_donated': _decimal(row.units_donated),
        'blood_group': row.blood_group,
        'rh_factor': row.rh_factor,
        'hiv_status': row.hiv_status,
        'hepatitis_b': row.hepatitis_b,
        'hepatitis_c': row.hepatitis_c,
        'syphilis': row.syphilis,
        'malaria': row.malaria,
        'notes': row.notes,
        'test_date': row.test_date,
    }


def membership(row) -> dict:
    return {
        'id': row.id,
        'role': row.role,
        'joined_at': row.joined_at,
        'org_id': row.organization_id,
        'org_name': row.organization.name,
        'org_type': row.organization.type,
        'org_city': row.organization.city,
    }


def member(row) -> dict:
    data = donor_summary(row.donor)
    data.update({
        'member_id': row.id,
        'role': row.role,
        'joined_at': row.joined_at,
        'availability': 'Available' if row.donor.is_available else 'Unavailable',
    })
    return data


def org_log(row) -> dict:
    return {
        'id': row.id,
        'action_type': row.action_type,
        'entity_name': row.entity_name,
        'description': row.description,
        'details': row.details,
        'created_at': row.created_at,
    }


def seeker(row) -> dict:
    return {
        'id': row.id,
        'full_name': row.full_name,
        'email': row.email,
        'phone': row.phone,
        'blood_type': row.blood_type,
        'required_date': row.required_date,
        'country': row.country,
        'state': row.state,
        'district': row.district,
        'created_at': row.created_at,
    }
