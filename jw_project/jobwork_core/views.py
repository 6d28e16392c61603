import json
from functools import wraps

from django.forms.models import model_to_dict
from django.http import Http404, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .exceptions import PersistenceError, PreconditionViolation, RecordNotFound
from .models import NumberingConfig
from .models.numbering import DOC_TYPE_CHOICES
from .services.documents import CONTROLLERS, InvoiceController
from .services.numbering import update_numbering_settings

DOC_TYPES = {code for code, _ in DOC_TYPE_CHOICES}


def _controller(request, kind):
    try:
        controller_class = CONTROLLERS[kind]
    except KeyError:
        raise Http404(f"Unknown document kind: {kind}")
    return controller_class(actor=request.headers.get("X-Actor", ""))


def _body(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        raise PreconditionViolation("Request body is not valid JSON")
    if not isinstance(body, dict):
        raise PreconditionViolation("Request body must be a JSON object")
    return body


def _serialize(record):
    data = model_to_dict(record)
    data["id"] = record.pk
    # child lines (purchase order items, invoice items, client rates)
    for relation in ("items", "processes"):
        manager = getattr(record, relation, None)
        if manager is not None and hasattr(manager, "all"):
            data[relation] = [model_to_dict(line) for line in manager.all()]
    return data


def _respond(submission, status=200):
    if not submission.ok:
        return JsonResponse({"ok": False, "errors": submission.errors}, status=400)
    return JsonResponse({"ok": True, "record": _serialize(submission.record)}, status=status)


def _guarded(view):
    """Map the core's exceptions onto JSON error responses."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except PreconditionViolation as e:
            return JsonResponse({"ok": False, "error": str(e)}, status=400)
        except RecordNotFound as e:
            return JsonResponse({"ok": False, "error": e.message}, status=404)
        except PersistenceError as e:
            return JsonResponse({"ok": False, "error": e.message}, status=409)
    return wrapper


@csrf_exempt
@require_http_methods(["GET", "POST"])
@_guarded
def document_list_view(request, kind):
    controller = _controller(request, kind)
    if request.method == "GET":
        records = controller.model.objects.all()[:200]
        return JsonResponse({"results": [_serialize(r) for r in records]})
    return _respond(controller.create(_body(request)), status=201)


@csrf_exempt
@require_http_methods(["GET", "PUT", "POST", "DELETE"])
@_guarded
def document_detail_view(request, kind, pk):
    controller = _controller(request, kind)
    if request.method == "GET":
        try:
            record = controller.model.objects.get(pk=pk)
        except controller.model.DoesNotExist:
            raise Http404(f"{kind} {pk} not found")
        return JsonResponse({"record": _serialize(record)})
    if request.method == "DELETE":
        controller.delete(pk)
        return JsonResponse({"ok": True})
    return _respond(controller.update(_body(request), pk))


@csrf_exempt
@require_http_methods(["POST"])
@_guarded
def invoice_from_challans_view(request):
    body = _body(request)
    controller = InvoiceController(actor=request.headers.get("X-Actor", ""))
    submission = controller.create_from_challans(
        body.get("client_name"),
        body.get("challan_ids") or [],
        body.get("invoice_date"),
        tax_type=body.get("tax_type") or "GST",
        invoice_number=body.get("invoice_number"),
    )
    return _respond(submission, status=201)


def _numbering_payload(config):
    return {
        "doc_type": config.doc_type,
        "prefix": config.prefix,
        "next_number": config.next_number,
        "mode": config.mode,
        "preview": config.next_preview,
    }


@csrf_exempt
@require_http_methods(["GET", "POST"])
def numbering_settings_view(request, doc_type):
    if doc_type not in DOC_TYPES:
        raise Http404(f"Unknown document type: {doc_type}")
    if request.method == "GET":
        return JsonResponse(_numbering_payload(NumberingConfig.objects.for_type(doc_type)))

    try:
        body = _body(request)
    except PreconditionViolation as e:
        return JsonResponse({"ok": False, "error": str(e)}, status=400)
    config, errors = update_numbering_settings(
        doc_type, body, actor=request.headers.get("X-Actor", ""))
    if errors:
        return JsonResponse({"ok": False, "errors": errors}, status=400)
    return JsonResponse({"ok": True, **_numbering_payload(config)})
