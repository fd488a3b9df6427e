from django.urls import path

from . import views

urlpatterns = [
    path("orders", views.orders_view, name="orders"),
    path("orders/<uuid:order_id>", views.order_detail_view, name="order-detail"),
    path("users/<uuid:user_id>/orders", views.user_orders_view, name="user-orders"),
    path("products", views.products_view, name="products"),
    path("products/<uuid:product_id>", views.product_detail_view, name="product-detail"),
]
