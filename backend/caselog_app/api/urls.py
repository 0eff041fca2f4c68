from django.urls import path
from caselog_app.api import views_cases, views_profile

# API endpoints
urlpatterns = [
    # Cases endpoints
    path("cases", views_cases.case_list_view, name="cases_list"),
    path("cases/validate-range", views_cases.validate_range_view, name="cases_validate_range"),
    path("cases/create", views_cases.create_case_view, name="cases_create"),
    path("cases/timer", views_cases.timer_case_view, name="cases_timer"),
    path("cases/batch", views_cases.batch_create_view, name="cases_batch"),
    path("cases/<int:case_id>/edit", views_cases.edit_case_view, name="cases_edit"),

    # Profile endpoints
    path("profile", views_profile.profile_view, name="profile"),

    # Stats endpoints
    path("stats/personal", views_profile.personal_stats_view, name="stats_personal"),
    path("stats/analytics", views_profile.analytics_view, name="stats_analytics"),
    path("stats/utilization", views_profile.utilization_stats_view, name="stats_utilization"),
]
