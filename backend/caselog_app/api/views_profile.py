"""
Widoki API dla profilu agenta i statystyk.
"""

from django.contrib.auth.decorators import login_required
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

from caselog_app.api.schemas import SaveProfileRequest, parse_json_to_dataclass
from caselog_app.api.views_cases import _caller_profile, error_response, parse_json_body
from caselog_app.services import metrics_service
from caselog_app.services.case_gateway import get_gateway
from caselog_app.utils.time_conversion import ParseError


@require_http_methods(["GET", "POST"])
@login_required
def profile_view(request):
    """
    GET /api/profile  -> {"profile": UserProfile | null}
    POST /api/profile -> zapis {"username": str, "shift_preferences": "HH:MM-HH:MM"}

    Preferencje zmiany są walidowane przed zapisem (pusty tekst = zmiana domyślna).
    """
    gateway = get_gateway()
    owner = request.user.get_username()

    if request.method == 'GET':
        profile = gateway.get_profile(owner)
        return JsonResponse({'profile': profile.to_dict() if profile else None})

    data = parse_json_body(request)
    if data is None:
        return error_response('Invalid JSON', 400)

    try:
        req = parse_json_to_dataclass(data, SaveProfileRequest)
    except ValueError as e:
        return error_response(str(e), 400)

    for field_name in ('username', 'shift_preferences'):
        value = getattr(req, field_name)
        if value is not None and not isinstance(value, str):
            return error_response(f'Invalid value for {field_name}: {value!r}', 400)

    username = (req.username or '').strip()
    if not username:
        return error_response('Username is required', 400)

    shift_preferences = (req.shift_preferences or '').strip()
    try:
        metrics_service.parse_shift_window(shift_preferences)
    except ParseError as e:
        return error_response(str(e), 400)

    profile = gateway.save_profile(owner, username, shift_preferences)
    return JsonResponse({'profile': profile.to_dict()})


@require_http_methods(["GET"])
@login_required
def personal_stats_view(request):
    """
    GET /api/stats/personal

    Dzisiejsze statystyki zalogowanego agenta (case'y jego profilu,
    rozpoczęte od lokalnej północy).

    Response: PersonalStatsDTO
    """
    profile, profile_error = _caller_profile(request)
    if profile_error:
        return profile_error

    records = [
        record for record in get_gateway().list_cases()
        if record.agent_name == profile.username
    ]

    try:
        stats = metrics_service.personal_stats(records, profile.shift_preferences)
    except ParseError as e:
        return error_response(str(e), 400)

    return JsonResponse(stats.to_dict())


@require_http_methods(["GET"])
@login_required
def analytics_view(request):
    """
    GET /api/stats/analytics

    Minuty per typ zadania dla wszystkich case'ów (praca i przerwy osobno).
    """
    summary = metrics_service.analytics_summary(get_gateway().list_cases())
    return JsonResponse(summary.to_dict())


@require_http_methods(["GET"])
@login_required
def utilization_stats_view(request):
    """
    GET /api/stats/utilization?period=<TimePoint>

    Statystyki wykorzystania ze zdalnego serwisu: {"daily": int|null, "weekly": int|null}
    """
    period_str = request.GET.get('period')
    if not period_str:
        return error_response('Missing period parameter', 400)

    try:
        period = int(period_str)
    except ValueError:
        return error_response('Invalid period (expected nanoseconds since epoch)', 400)

    return JsonResponse(get_gateway().get_utilization_stats(period).to_dict())
