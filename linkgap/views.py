"""Django views for the linkgap app.

``analyze`` accepts a page (and optionally other pages of the same site) and
returns the flat report record as JSON. ``health`` reports whether the
embedding service is reachable.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .engine.config import EngineConfig, load_config
from .engine.embeddings import OllamaClient
from .engine.errors import ConfigurationError
from .engine.index import analyze_page
from .engine.report import STATUS_ERROR, error_report
from .forms import AnalyzeForm

logger = logging.getLogger(__name__)


def get_engine_config() -> EngineConfig:
    """Build the engine configuration from the Django settings."""

    return load_config(
        getattr(settings, 'LINKGAP_CONFIG_PATH', None),
        getattr(settings, 'LINKGAP_OVERRIDES', None),
    )


def _request_data(request: HttpRequest) -> Dict[str, Any] | None:
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body.decode('utf-8') or '{}')
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None
    return request.POST


@csrf_exempt
@require_POST
def analyze(request: HttpRequest) -> JsonResponse:
    """Analyse one page and return its report record."""

    data = _request_data(request)
    if data is None:
        return JsonResponse({'errors': {'__all__': [{'message': 'Request body must be a JSON object.'}]}}, status=400)

    form = AnalyzeForm(data)
    if not form.is_valid():
        return JsonResponse({'errors': form.errors.get_json_data()}, status=400)

    url = form.cleaned_data['url']
    try:
        config = get_engine_config()
    except ConfigurationError as exc:
        logger.error('Invalid analyzer configuration: %s', exc)
        return JsonResponse(error_report(url, exc), status=422)

    report = analyze_page(
        form.cleaned_data['html'],
        url,
        form.cleaned_data.get('title') or '',
        candidates=form.cleaned_data.get('pages'),
        config=config,
    )
    status = 422 if report.get('Status') == STATUS_ERROR else 200
    return JsonResponse(report, status=status)


@require_GET
def health(request: HttpRequest) -> JsonResponse:
    """Liveness of the embedding service used for semantic analysis."""

    try:
        client = OllamaClient(get_engine_config())
    except ConfigurationError as exc:
        return JsonResponse({'ollama': False, 'error': str(exc)}, status=503)
    return JsonResponse(
        {
            'ollama': client.is_available(),
            'endpoint': client.endpoint,
            'model': client.model,
        }
    )
