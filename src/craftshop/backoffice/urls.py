"""Admin API URLs, mounted under /api/admin/."""

from django.urls import path

from . import views

app_name = "backoffice"

urlpatterns = [
    path("dashboard/", views.dashboard, name="dashboard"),

    # Catalog
    path("products/", views.ProductsView.as_view(), name="products"),
    path("products/<str:product_id>/", views.ProductDetailView.as_view(), name="product-detail"),
    path("categories/", views.CategoriesView.as_view(), name="categories"),
    path("categories/<str:category_id>/", views.CategoryDetailView.as_view(), name="category-detail"),
    path("sync-category-images/", views.sync_category_images, name="sync-category-images"),
    path("upload-assets/", views.upload_assets, name="upload-assets"),

    # Orders
    path("orders/", views.OrdersView.as_view(), name="orders"),
    path("orders/send-status-email/", views.send_status_email, name="send-status-email"),
    path("orders/<str:order_id>/", views.order_detail, name="order-detail"),

    # Customers
    path("customers/", views.customer_list, name="customers"),
    path("customers/guest/", views.guest_customer, name="guest-customer"),
    path("customers/<str:customer_id>/", views.customer_detail, name="customer-detail"),
]
