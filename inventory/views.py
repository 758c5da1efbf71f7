import logging

from django.db import IntegrityError
from django.db.models import Count, F, Q
from django.http import JsonResponse

from backoffice.http import api_view, form_error_response, iso, json_error, money, parse_int, parse_json_body
from .forms import CategoryForm, ProductForm
from .models import Category, Product

logger = logging.getLogger(__name__)

# ?sortBy= values -> model fields; anything else falls back to name.
PRODUCT_SORT_FIELDS = {
    "name": "name",
    "reference": "reference",
    "sellingPrice": "selling_price",
    "supplierPrice": "supplier_price",
    "stockQuantity": "stock_quantity",
    "createdAt": "created_at",
}


def _serialize_product(p):
    return {
        "id": p.id,
        "name": p.name,
        "reference": p.reference,
        "supplierPrice": money(p.supplier_price),
        "sellingPrice": money(p.selling_price),
        "profitMargin": money(p.profit_margin),
        "stockQuantity": p.stock_quantity,
        "provisionalStock": p.provisional_stock,
        "reorderLevel": p.reorder_level,
        "lowStock": p.is_low_stock,
        "description": p.description,
        "supplierId": p.supplier_id,
        "supplierName": p.supplier.name if p.supplier_id else None,
        "categoryId": p.category_id,
        "categoryName": p.category.name if p.category_id else None,
        "createdAt": iso(p.created_at),
        "updatedAt": iso(p.updated_at),
    }


def _serialize_category(c):
    return {
        "id": c.id,
        "name": c.name,
        "createdAt": iso(c.created_at),
        "updatedAt": iso(c.updated_at),
    }


# --- Products ---


@api_view(["GET", "POST"])
def products_collection(request):
    if request.method == "GET":
        qs = Product.objects.select_related("supplier", "category")
        category_id = parse_int(request.GET.get("categoryId"))
        if category_id is not None:
            qs = qs.filter(category_id=category_id)
        supplier_id = parse_int(request.GET.get("supplierId"))
        if supplier_id is not None:
            qs = qs.filter(supplier_id=supplier_id)
        search = (request.GET.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(reference__icontains=search) | Q(description__icontains=search)
            )
        stock_level = request.GET.get("stockLevel")
        if stock_level == "low":
            qs = qs.filter(stock_quantity__lte=F("reorder_level"))
        elif stock_level == "out":
            qs = qs.filter(stock_quantity__lte=0)

        field = PRODUCT_SORT_FIELDS.get(request.GET.get("sortBy") or "name", "name")
        if (request.GET.get("sortOrder") or "asc").lower() == "desc":
            field = "-" + field
        qs = qs.order_by(field, "id")
        return JsonResponse([_serialize_product(p) for p in qs], safe=False)

    form = ProductForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    if Product.objects.filter(reference=form.cleaned_data["reference"]).exists():
        return json_error("A product with this reference already exists", status=409)
    try:
        product = form.save()
    except IntegrityError:
        return json_error("A product with this reference already exists", status=409)
    logger.info("Product %s created (id=%s)", product.reference, product.id)
    return JsonResponse({"message": "Product created successfully", "id": product.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def product_detail(request, pk: int):
    product = Product.objects.select_related("supplier", "category").filter(pk=pk).first()
    if product is None:
        return json_error("Product not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_product(product))

    if request.method == "PUT":
        form = ProductForm.from_payload(parse_json_body(request), instance=product)
        if not form.is_valid():
            return form_error_response(form)
        reference = form.cleaned_data["reference"]
        if Product.objects.filter(reference=reference).exclude(pk=product.pk).exists():
            return json_error("A product with this reference already exists", status=409)
        try:
            product = form.save()
        except IntegrityError:
            return json_error("A product with this reference already exists", status=409)
        return JsonResponse(_serialize_product(product))

    blocker = product.deletion_blocker()
    if blocker:
        logger.warning("Refused to delete product %s: %s", product.id, blocker)
        return json_error(blocker, status=400)
    product.delete()
    logger.info("Product %s deleted", pk)
    return JsonResponse({"message": "Product deleted successfully"})


@api_view(["GET"])
def check_reference(request):
    reference = (request.GET.get("reference") or "").strip()
    if not reference:
        return json_error("Reference is required", status=400)
    qs = Product.objects.filter(reference=reference)
    exclude_id = parse_int(request.GET.get("excludeId"))
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return JsonResponse({"available": not qs.exists()})


# --- Categories ---


@api_view(["GET", "POST"])
def categories_collection(request):
    if request.method == "GET":
        qs = Category.objects.annotate(product_count=Count("products")).order_by("name")
        data = []
        for c in qs:
            row = _serialize_category(c)
            row["productCount"] = c.product_count
            data.append(row)
        return JsonResponse(data, safe=False)

    form = CategoryForm.from_payload(parse_json_body(request))
    if not form.is_valid():
        return form_error_response(form)
    if Category.objects.filter(name=form.cleaned_data["name"]).exists():
        return json_error("A category with this name already exists", status=409)
    try:
        category = form.save()
    except IntegrityError:
        return json_error("A category with this name already exists", status=409)
    return JsonResponse({"message": "Category created successfully", "id": category.id}, status=201)


@api_view(["GET", "PUT", "DELETE"])
def category_detail(request, pk: int):
    category = Category.objects.filter(pk=pk).first()
    if category is None:
        return json_error("Category not found", status=404)

    if request.method == "GET":
        return JsonResponse(_serialize_category(category))

    if request.method == "PUT":
        form = CategoryForm.from_payload(parse_json_body(request), instance=category)
        if not form.is_valid():
            return form_error_response(form)
        if Category.objects.filter(name=form.cleaned_data["name"]).exclude(pk=category.pk).exists():
            return json_error("A category with this name already exists", status=409)
        try:
            category = form.save()
        except IntegrityError:
            return json_error("A category with this name already exists", status=409)
        return JsonResponse(_serialize_category(category))

    blocker = category.deletion_blocker()
    if blocker:
        logger.warning("Refused to delete category %s: %s", category.id, blocker)
        return json_error(blocker, status=400)
    category.delete()
    logger.info("Category %s deleted", pk)
    return JsonResponse({"message": "Category deleted successfully"})
