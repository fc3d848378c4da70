from django.contrib import admin
from django.http import HttpResponse
from django.urls import path, include


def healthz(_): return HttpResponse("ok", content_type="text/plain")


urlpatterns = [
    path("admin/", admin.site.urls),
    path("healthz/", healthz),
    path(
        "api/",
        include([
            path("", include("apps.users.api.urls")),
            path("", include("apps.tasks.api.urls")),
            path("", include("apps.common.api.urls")),
        ])
    ),
]
