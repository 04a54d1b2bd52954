"""Authentication decorators for the JSON API."""

from functools import wraps

from django.http import JsonResponse


def _user_from_bearer(request):
    """Resolve an `Authorization: Bearer <token>` header to a user.

    Returns (user, error_response). Both are None when no header was sent.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None, None

    token = auth_header[7:].strip()  # Remove "Bearer " prefix

    from rest_framework.authtoken.models import Token
    try:
        token_obj = Token.objects.select_related("user").get(key=token)
    except Token.DoesNotExist:
        return None, JsonResponse({"error": "Invalid token"}, status=401)

    if not token_obj.user.is_active:
        return None, JsonResponse({"error": "Invalid token"}, status=401)
    return token_obj.user, None


def login_required_json(view_func):
    """Require a logged-in session; answer 401 JSON instead of redirecting."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({"error": "Authentication required"}, status=401)
        return view_func(request, *args, **kwargs)

    return wrapper


def admin_required(view_func):
    """Require a store admin, by session or by Bearer API token.

    401 when no identity is presented, 403 when the identity is not an admin.
    """

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        user, error = _user_from_bearer(request)
        if error is not None:
            return error
        if user is not None:
            request.user = user
        elif not request.user.is_authenticated:
            return JsonResponse({"error": "Authentication required"}, status=401)

        if not request.user.is_store_admin:
            return JsonResponse({"error": "Admin access required"}, status=403)
        return view_func(request, *args, **kwargs)

    return wrapper
