from django.urls import path

from .views import EmailTestAPIView

urlpatterns = [
    path("email/test/", EmailTestAPIView.as_view(), name="email-test"),
]
