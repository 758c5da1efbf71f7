import logging

from django.contrib.auth import authenticate, get_user_model, login, logout
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from backoffice.http import api_view, form_error_response, iso, json_error, money, parse_json_body
from .forms import LoginForm, RoleForm, UserForm
from .models import Role, UserProfile, UserRole

logger = logging.getLogger(__name__)

User = get_user_model()


def _serialize_role(role):
    return {
        "id": role.id,
        "roleName": role.role_name,
        "description": role.description,
        "createdAt": iso(role.created_at),
        "updatedAt": iso(role.updated_at),
    }


def _serialize_user(user):
    profile = getattr(user, "profile", None)
    roles = Role.objects.filter(assignments__user=user).order_by("role_name")
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "firstname": user.first_name,
        "lastname": user.last_name,
        "phone": profile.phone if profile else "",
        "address": profile.address if profile else "",
        "city": profile.city if profile else "",
        "balance": money(profile.balance if profile else None),
        "actived": user.is_active,
        "roles": [r.role_name for r in roles],
        "dateJoined": iso(user.date_joined),
    }


def _user_form_data(user):
    profile = getattr(user, "profile", None)
    return {
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": profile.phone if profile else "",
        "address": profile.address if profile else "",
        "city": profile.city if profile else "",
        "balance": profile.balance if profile else None,
        "is_active": user.is_active,
    }


# --- Roles ---


@api_view(["GET", "POST"])
def roles_collection(request):
    if request.method == "GET":
        roles = Role.objects.annotate(user_count=Count("assignments")).order_by("role_name")
        data = []
        for role in roles:
            row = _serialize_role(role)
            row["userCount"] = role.user_count
            data.append(row)
        return JsonResponse(data, safe=False)

    form = RoleForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    if Role.objects.filter(role_name=form.cleaned_data["role_name"]).exists():
        return json_error("A role with this name already exists", status=409)
    try:
        role = form.save()
    except IntegrityError:
        return json_error("A role with this name already exists", status=409)
    logger.info("Role %s created (id=%s)", role.role_name, role.id)
    return JsonResponse({"message": "Role created successfully", "id": role.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def role_detail(request, pk: int):
    role = Role.objects.filter(pk=pk).first()
    if role is None:
        return json_error("Role not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_role(role))

    if request.method == "PUT":
        form = RoleForm.from_payload(parse_json_body(request), instance=role)
        if not form.is_valid():
            return form_error_response(form)
        name = form.cleaned_data["role_name"]
        if Role.objects.filter(role_name=name).exclude(pk=role.pk).exists():
            return json_error("A role with this name already exists", status=409)
        try:
            role = form.save()
        except IntegrityError:
            return json_error("A role with this name already exists", status=409)
        return JsonResponse(_serialize_role(role))

    blocker = role.deletion_blocker()
    if blocker:
        logger.warning("Refused to delete role %s: %s", role.id, blocker)
        return json_error(blocker, status=400)
    role.delete()
    logger.info("Role %s deleted", pk)
    return JsonResponse({"message": "Role deleted successfully"})


@api_view(["GET"])
def role_users_count(request, pk: int):
    role = get_object_or_404(Role, pk=pk)
    return JsonResponse({"roleId": role.id, "count": role.assignments.count()})


# --- Users ---


@api_view(["GET", "POST"])
def users_collection(request):
    if request.method == "GET":
        users = User.objects.select_related("profile").order_by("username")
        search = (request.GET.get("search") or "").strip()
        if search:
            users = users.filter(
                Q(username__icontains=search)
                | Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
            )
        return JsonResponse([_serialize_user(u) for u in users], safe=False)

    form = UserForm.from_payload(parse_json_body(request), require_password=True)
    if not form.is_valid():
        return form_error_response(form)
    cd = form.cleaned_data
    if User.objects.filter(Q(username=cd["username"]) | Q(email=cd["email"])).exists():
        return json_error("Username or email already exists", status=409)
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=cd["username"],
                email=cd["email"],
                password=cd["password"],
                first_name=cd["first_name"],
                last_name=cd["last_name"],
                is_active=cd["is_active"],
            )
            UserProfile.objects.create(
                user=user,
                phone=cd["phone"],
                address=cd["address"],
                city=cd["city"],
                balance=cd["balance"],
            )
    except IntegrityError:
        return json_error("Username or email already exists", status=409)
    logger.info("User %s created (id=%s)", user.username, user.id)
    return JsonResponse({"message": "User created successfully", "id": user.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def user_detail(request, pk: int):
    user = User.objects.select_related("profile").filter(pk=pk).first()
    if user is None:
        return json_error("User not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_user(user))

    if request.method == "PUT":
        form = UserForm.from_payload(parse_json_body(request), base=_user_form_data(user))
        if not form.is_valid():
            return form_error_response(form)
        cd = form.cleaned_data
        clash = User.objects.filter(Q(username=cd["username"]) | Q(email=cd["email"])).exclude(pk=user.pk)
        if clash.exists():
            return json_error("Username or email already exists", status=409)
        with transaction.atomic():
            user.username = cd["username"]
            user.email = cd["email"]
            user.first_name = cd["first_name"]
            user.last_name = cd["last_name"]
            user.is_active = cd["is_active"]
            if cd["password"]:
                user.set_password(cd["password"])
            user.save()
            UserProfile.objects.update_or_create(
                user=user,
                defaults={
                    "phone": cd["phone"],
                    "address": cd["address"],
                    "city": cd["city"],
                    "balance": cd["balance"],
                },
            )
        user.refresh_from_db()
        return JsonResponse(_serialize_user(user))

    if user.pk == request.user.pk:
        return json_error("You cannot delete your own account", status=400)
    user.delete()
    logger.info("User %s deleted", pk)
    return JsonResponse({"message": "User deleted successfully"})


@api_view(["GET", "PUT"])
def user_roles(request, pk: int):
    """Roles assigned to a user. PUT replaces the whole set: {"roleIds": [..]}."""
    user = get_object_or_404(User, pk=pk)

    if request.method == "PUT":
        payload = parse_json_body(request)
        role_ids = payload.get("roleIds")
        if not isinstance(role_ids, list):
            return json_error("roleIds must be a list", status=400)
        try:
            wanted = {int(rid) for rid in role_ids}
        except (TypeError, ValueError):
            return json_error("roleIds must contain integers", status=400)
        found = set(Role.objects.filter(pk__in=wanted).values_list("pk", flat=True))
        missing = wanted - found
        if missing:
            return json_error(f"Unknown role id(s): {sorted(missing)}", status=400)
        with transaction.atomic():
            UserRole.objects.filter(user=user).exclude(role_id__in=wanted).delete()
            existing = set(UserRole.objects.filter(user=user).values_list("role_id", flat=True))
            UserRole.objects.bulk_create([UserRole(user=user, role_id=rid) for rid in wanted - existing])
        logger.info("Roles of user %s set to %s", user.pk, sorted(wanted))

    roles = Role.objects.filter(assignments__user=user).order_by("role_name")
    return JsonResponse([_serialize_role(r) for r in roles], safe=False)


@api_view(["GET"])
def me(request):
    return JsonResponse(_serialize_user(request.user))


# --- Session ---


@api_view(["POST"], login_required=False)
def login_view(request):
    form = LoginForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    user = authenticate(
        request,
        username=form.cleaned_data["username"],
        password=form.cleaned_data["password"],
    )
    if user is None:
        logger.warning("Failed login for %s", form.cleaned_data["username"])
        return json_error("Invalid username or password", status=401)
    login(request, user)
    logger.info("User %s logged in", user.username)
    return JsonResponse(_serialize_user(user))


@api_view(["POST"], login_required=False)
def logout_view(request):
    logout(request)
    return JsonResponse({"message": "Logged out"})
