from django.urls import include, path

urlpatterns = [
    path("api/", include("caselog_app.api.urls")),
]
