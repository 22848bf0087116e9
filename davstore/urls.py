from django.urls import path

from . import views

urlpatterns = [
    path("objects/<path:hash_path>", views.serve_object, name="davstore-object"),
]
