from django.urls import path, include

from authentication.views import csrf as csrf_view

urlpatterns = [
    # CSRF endpoint used by the frontend: GET http://localhost:8000/api/csrf/
    path("api/csrf/", csrf_view, name="csrf"),

    path("auth/", include("authentication.urls")),
    path("api/chat/", include("chat.urls")),
    path("chat/", include("chat.page_urls")),
    path("api/", include("history.urls")),

    path("", include("django_prometheus.urls")),
]
