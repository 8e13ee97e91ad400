# videocall/urls.py
#
# Prefixed with /api/videocall/ in healthcare_portal/urls.py.

from django.urls import path

from . import views

urlpatterns = [
    path("health/",           views.HealthView.as_view()),
    path("rooms/<str:room_id>/", views.RoomDetailView.as_view()),
]
