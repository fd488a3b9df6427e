from django.urls import path

from . import views

urlpatterns = [
    path("auth/login", views.login_view, name="login"),
    path("auth/logout", views.logout_view, name="logout"),
    path("users/me", views.me_view, name="me"),
    path("users/me/saved-products", views.saved_products_view, name="saved-products"),
]
