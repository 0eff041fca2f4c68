"""
Widoki API dla case'ów.

Odpowiedzialności:
- walidacja przedziału czasu dla formularzy (bez zapisu)
- lista case'ów z polami do wyświetlenia
- create / edit / batch / timer - przekazanie do zdalnego serwisu

Mapowanie błędów:
- 400: walidacja wpisu, nieprawidłowy JSON
- 403: brak profilu agenta
- 404: NotFoundError
- 409: ConflictError (nakładanie się z istniejącym case'em)
"""

import json
import logging

from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from caselog_app.api.schemas import (
    CaseEntryRequest,
    CaseListItemDTO,
    CaseRecord,
    SubmitResultDTO,
    ValidateRangeRequest,
    parse_json_to_dataclass,
)
from caselog_app.services import case_service
from caselog_app.services.case_gateway import (
    ConflictError,
    NotFoundError,
    ServiceValidationError,
    get_gateway,
)
from caselog_app.services.case_service import EntryValidationError
from caselog_app.services.interval_service import MissingFieldError, validate_range
from caselog_app.services.metrics_service import case_duration_minutes, task_type_label
from caselog_app.utils.time_conversion import format_display, format_duration, to_local_input

logger = logging.getLogger(__name__)


# === Helper functions ===

def parse_json_body(request):
    """Parsuje JSON body z requesta."""
    try:
        return json.loads(request.body)
    except (json.JSONDecodeError, ValueError):
        return None


def error_response(message: str, status: int = 400, errors=None):
    """Zwraca error response."""
    body = {"error": message}
    if errors:
        body["errors"] = errors
    return JsonResponse(body, status=status)


def _caller_profile(request):
    """
    Zwraca profil zalogowanego agenta lub JsonResponse z błędem.

    Returns:
        tuple: (profile, None) jeśli OK, lub (None, error_response) jeśli brak profilu
    """
    profile = get_gateway().get_profile(request.user.get_username())
    if profile is None:
        return None, error_response('User profile not found', 403)
    return profile, None


def _entry_from_payload(data: dict, default_agent: str) -> CaseEntryRequest:
    payload = dict(data)
    if not payload.get('agent_name'):
        payload['agent_name'] = default_agent
    return parse_json_to_dataclass(payload, CaseEntryRequest)


def _list_item(record: CaseRecord) -> dict:
    tz_name = settings.CASELOG_DISPLAY_TIMEZONE
    return CaseListItemDTO(
        case=record.to_dict(),
        task_type_label=task_type_label(record.task_type),
        start_display=format_display(record.start_time, tz_name),
        end_display=format_display(record.end_time, tz_name),
        start_local_input=to_local_input(record.start_time),
        end_local_input=to_local_input(record.end_time),
        duration_display=format_duration(case_duration_minutes(record)),
    ).to_dict()


def _submit(action):
    """
    Wywołuje akcję zapisu i mapuje wyjątki domenowe na odpowiedzi HTTP.

    Brak ponawiania - błąd serwisu wraca do użytkownika.
    """
    try:
        records = action()
    except EntryValidationError as e:
        return error_response('Validation failed', 400, errors=e.errors)
    except MissingFieldError as e:
        return error_response(str(e), 400)
    except ServiceValidationError as e:
        return error_response(str(e), 400)
    except ConflictError as e:
        return error_response(str(e), 409)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except Exception as e:
        logger.exception("Nieoczekiwany błąd zapisu case'a")
        return error_response(f'Internal error: {e}', 500)

    result = SubmitResultDTO(success=True, cases=[_list_item(r) for r in records])
    return JsonResponse(result.to_dict())


# === Endpoints ===

@require_http_methods(["POST"])
@login_required
def validate_range_view(request):
    """
    POST /api/cases/validate-range

    Request: {"start_time": str|int, "end_time": str|int}
    Response: {"valid": bool, "error": str|null, "reason": str|null}

    Zawsze 200 dla poprawnego JSON - wynik walidacji jest w treści.
    """
    data = parse_json_body(request)
    if data is None:
        return error_response('Invalid JSON', 400)

    try:
        req = parse_json_to_dataclass(data, ValidateRangeRequest)
    except ValueError as e:
        return error_response(str(e), 400)

    return JsonResponse(validate_range(req.start_time, req.end_time).to_dict())


@require_http_methods(["GET"])
@login_required
def case_list_view(request):
    """
    GET /api/cases?recent=N

    Bez parametru: wszystkie case'y w kolejności wstawiania.
    Z recent=N: N ostatnio dodanych, od najnowszego.
    """
    records = get_gateway().list_cases()

    recent = request.GET.get('recent')
    if recent:
        try:
            count = int(recent)
        except ValueError:
            return error_response('Invalid recent parameter (expected integer)', 400)
        if count <= 0:
            return error_response('Invalid recent parameter (expected positive integer)', 400)
        records = list(reversed(records[-count:]))

    return JsonResponse({'cases': [_list_item(record) for record in records]})


@require_http_methods(["POST"])
@login_required
def create_case_view(request):
    """
    POST /api/cases/create

    Request: pola CaseEntryRequest; agent_name domyślnie = username z profilu.
    Response: SubmitResultDTO
    """
    profile, profile_error = _caller_profile(request)
    if profile_error:
        return profile_error

    data = parse_json_body(request)
    if not isinstance(data, dict):
        return error_response('Invalid JSON', 400)

    try:
        entry = _entry_from_payload(data, profile.username)
    except ValueError as e:
        return error_response(str(e), 400)

    gateway = get_gateway()
    return _submit(lambda: [case_service.submit_case(gateway, entry)])


@require_http_methods(["POST"])
@login_required
def timer_case_view(request):
    """
    POST /api/cases/timer

    Request: pola CaseEntryRequest (bez czasów) + "started_at_ms": int
    Koniec sesji = chwila zapisu.
    """
    profile, profile_error = _caller_profile(request)
    if profile_error:
        return profile_error

    data = parse_json_body(request)
    if not isinstance(data, dict):
        return error_response('Invalid JSON', 400)

    started_at_ms = data.pop('started_at_ms', None)
    if started_at_ms is not None and (isinstance(started_at_ms, bool) or not isinstance(started_at_ms, int)):
        return error_response('Invalid started_at_ms (expected integer milliseconds)', 400)

    try:
        entry = _entry_from_payload(data, profile.username)
    except ValueError as e:
        return error_response(str(e), 400)

    gateway = get_gateway()
    return _submit(lambda: [case_service.submit_timer_case(gateway, entry, started_at_ms)])


@require_http_methods(["POST"])
@login_required
def edit_case_view(request, case_id):
    """
    POST /api/cases/<case_id>/edit

    Request: pełny stan case'a (pola CaseEntryRequest).
    """
    profile, profile_error = _caller_profile(request)
    if profile_error:
        return profile_error

    data = parse_json_body(request)
    if not isinstance(data, dict):
        return error_response('Invalid JSON', 400)

    try:
        entry = _entry_from_payload(data, profile.username)
    except ValueError as e:
        return error_response(str(e), 400)

    gateway = get_gateway()
    return _submit(lambda: [case_service.edit_case(gateway, case_id, entry)])


@require_http_methods(["POST"])
@login_required
def batch_create_view(request):
    """
    POST /api/cases/batch

    Request: {"entries": [CaseEntryRequest, ...]}
    Każdy wpis ma własne agent_name. Wszystkie wpisy są walidowane
    przed wysłaniem; zapis to jedno wywołanie serwisu.
    """
    data = parse_json_body(request)
    if not isinstance(data, dict):
        return error_response('Invalid JSON', 400)

    entries_raw = data.get('entries', [])
    if not isinstance(entries_raw, list):
        return error_response('Invalid entries format (expected list)', 400)

    try:
        entries = [parse_json_to_dataclass(item, CaseEntryRequest) for item in entries_raw]
    except ValueError as e:
        return error_response(f'Invalid entries format: {e}', 400)

    gateway = get_gateway()
    return _submit(lambda: case_service.submit_batch(gateway, entries))
