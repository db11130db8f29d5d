from __future__ import annotations

import json
from typing import Optional

from django.http import JsonResponse


def parse_json_body(request) -> Optional[dict]:
    """Decode a JSON object body; ``None`` when the body is not a JSON object.

    An empty body reads as ``{}``. Form-encoded bodies fall back to
    ``request.POST`` so multipart uploads can carry fields too.
    """

    content_type = request.META.get('CONTENT_TYPE', '')
    if content_type.startswith(('multipart/form-data', 'application/x-www-form-urlencoded')):
        return request.POST.dict()
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body.decode('utf-8'))
    except (UnicodeDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def error_response(message: str, status: int = 400, **extra) -> JsonResponse:
    return JsonResponse({'error': message, **extra}, status=status)


def invalid_json_response() -> JsonResponse:
    return error_response('Request body must be a JSON object.')


def form_error_response(form, status: int = 400) -> JsonResponse:
    errors = {field: [str(message) for message in messages] for field, messages in form.errors.items()}
    first = next((messages[0] for messages in errors.values() if messages), 'Invalid input.')
    return JsonResponse({'error': first, 'errors': errors}, status=status)


def message_response(message: str, status: int = 200, **extra) -> JsonResponse:
    return JsonResponse({'message': message, **extra}, status=status)
