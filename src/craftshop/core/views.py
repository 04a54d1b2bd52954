"""Core views: health check and the account/auth JSON API."""

import logging

from django.contrib.auth import (
    authenticate,
    get_user_model,
    login,
    logout,
    update_session_auth_hash,
)
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .decorators import login_required_json
from .http import (
    InvalidField,
    InvalidJSON,
    invalid_field_response,
    invalid_json_response,
    parse_json,
    text_field,
)

logger = logging.getLogger(__name__)


def health_check(request):
    """Health check endpoint for container orchestration."""
    from django.db import connection

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

        return JsonResponse({"status": "healthy", "database": "connected"})
    except Exception as e:
        logger.exception("Health check failed")
        return JsonResponse(
            {"status": "unhealthy", "error": str(e)},
            status=503,
        )


def password_field(data, name):
    """Passwords are taken as sent, never stripped."""
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidField(name)
    return value


def user_to_dict(user):
    return {
        "id": str(user.pk),
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "role": user.role,
        "is_admin": user.is_store_admin,
    }


@method_decorator(csrf_exempt, name="dispatch")
class SignupView(View):
    """Create a customer account and log it in.

    POST /api/auth/signup/
    {"email": "...", "password": "...", "first_name": "", "last_name": "", "phone": ""}
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            email = text_field(data, "email", lower=True)
            password = password_field(data, "password")
            first_name = text_field(data, "first_name")
            last_name = text_field(data, "last_name")
            phone = text_field(data, "phone")
        except InvalidField as e:
            return invalid_field_response(e)

        if not email or not password:
            return JsonResponse({"error": "Email and password required"}, status=400)

        try:
            validate_email(email)
        except ValidationError:
            return JsonResponse({"error": "Invalid email address"}, status=400)

        User = get_user_model()
        if User.objects.filter(email__iexact=email).exists():
            return JsonResponse({"error": "An account with this email already exists"}, status=409)

        candidate = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        try:
            validate_password(password, user=candidate)
        except ValidationError as e:
            return JsonResponse({"error": " ".join(e.messages)}, status=400)

        user = User.objects.create_user(
            email=email,
            password=password,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            phone=phone,
        )
        login(request, user, backend="craftshop.core.backends.EmailBackend")
        logger.info("Customer signed up", extra={"user_id": str(user.pk)})

        return JsonResponse({"user": user_to_dict(user)}, status=201)


@method_decorator(csrf_exempt, name="dispatch")
class LoginView(View):
    """Session login.

    POST /api/auth/login/
    {"email": "user@example.com", "password": "secret"}
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            email = text_field(data, "email", lower=True)
            password = password_field(data, "password")
        except InvalidField as e:
            return invalid_field_response(e)

        if not email or not password:
            return JsonResponse({"error": "Email and password required"}, status=400)

        user = authenticate(request, username=email, password=password)
        if not user:
            return JsonResponse({"error": "Invalid credentials"}, status=401)

        login(request, user)
        return JsonResponse({"user": user_to_dict(user)})


@method_decorator(csrf_exempt, name="dispatch")
class LogoutView(View):
    def post(self, request):
        logout(request)
        return JsonResponse({"success": True})


@method_decorator(csrf_exempt, name="dispatch")
class TokenView(View):
    """Issue an API token for the back-office.

    POST /api/auth/token/
    {"email": "admin@example.com", "password": "secret"}

    Returns a token for `Authorization: Bearer <token>`. Admins only.
    """

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            email = text_field(data, "email", lower=True)
            password = password_field(data, "password")
        except InvalidField as e:
            return invalid_field_response(e)

        if not email or not password:
            return JsonResponse({"error": "Email and password required"}, status=400)

        user = authenticate(request, username=email, password=password)
        if not user:
            return JsonResponse({"error": "Invalid credentials"}, status=401)

        if not user.is_store_admin:
            return JsonResponse({"error": "Admin access required"}, status=403)

        from rest_framework.authtoken.models import Token
        token, created = Token.objects.get_or_create(user=user)

        return JsonResponse({"token": token.key, "user": user_to_dict(user)})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class AccountView(View):
    """The logged-in user's profile."""

    editable_fields = ("first_name", "last_name", "phone")

    def get(self, request):
        return JsonResponse({"user": user_to_dict(request.user)})

    def patch(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            values = {f: text_field(data, f) for f in self.editable_fields if f in data}
        except InvalidField as e:
            return invalid_field_response(e)

        user = request.user
        for field, value in values.items():
            if len(value) > user._meta.get_field(field).max_length:
                return JsonResponse({"error": f"{field} is too long"}, status=400)

        for field, value in values.items():
            setattr(user, field, value)
        if values:
            user.save(update_fields=list(values))

        return JsonResponse({"user": user_to_dict(user)})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required_json, name="dispatch")
class PasswordChangeView(View):
    """Change password without ending the current session."""

    def post(self, request):
        try:
            data = parse_json(request)
        except InvalidJSON:
            return invalid_json_response()

        try:
            current = password_field(data, "current_password")
            new = password_field(data, "new_password")
        except InvalidField as e:
            return invalid_field_response(e)

        if not request.user.check_password(current):
            return JsonResponse({"error": "Current password is incorrect"}, status=400)
        if not new:
            return JsonResponse({"error": "New password is required"}, status=400)

        try:
            validate_password(new, user=request.user)
        except ValidationError as e:
            return JsonResponse({"error": " ".join(e.messages)}, status=400)

        request.user.set_password(new)
        request.user.save(update_fields=["password"])
        update_session_auth_hash(request, request.user)

        return JsonResponse({"success": True})
