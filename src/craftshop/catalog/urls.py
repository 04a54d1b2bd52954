"""Public catalog URLs."""

from django.urls import path

from . import views

app_name = "catalog"

urlpatterns = [
    path("products/", views.product_list, name="product-list"),
    path("products/<str:product_id>/", views.product_detail, name="product-detail"),
    path("featured-products/", views.featured_products, name="featured-products"),
    path("categories/", views.category_list, name="category-list"),
    path("categories/<str:category_id>/products/", views.category_products, name="category-products"),
]
