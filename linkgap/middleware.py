"""Rate limiting for the analysis endpoint.

Every analysis may issue one embedding request per page, so the number of
analyses a single client can start per window is capped.
"""

from __future__ import annotations

import math
import time
from typing import Callable, List

from django.conf import settings
from django.core.cache import caches
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.urls import Resolver404, resolve

DEFAULT_THROTTLE_LIMIT = 30  # analyses
DEFAULT_THROTTLE_WINDOW = 60  # seconds
DEFAULT_THROTTLE_KEY_PREFIX = 'linkgap:throttle'


class SlidingWindowRateThrottle:
    """Per-client sliding-window limit on the analysis routes, kept in the cache backend."""

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
        *,
        limit: int | None = None,
        window: int | None = None,
        cache_alias: str = 'default',
        key_prefix: str | None = None,
    ) -> None:
        self.get_response = get_response
        self.limit = limit or getattr(settings, 'THROTTLE_LIMIT', DEFAULT_THROTTLE_LIMIT)
        self.window = window or getattr(settings, 'THROTTLE_WINDOW', DEFAULT_THROTTLE_WINDOW)
        self.cache = caches[cache_alias]
        self.key_prefix = key_prefix or getattr(settings, 'THROTTLE_KEY_PREFIX', DEFAULT_THROTTLE_KEY_PREFIX)

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Only analyses are costly; probes and page loads are never limited.
        if request.method != 'POST':
            return self.get_response(request)

        try:
            match = resolve(request.path_info)
        except Resolver404:
            return self.get_response(request)

        if match.view_name not in getattr(settings, 'THROTTLED_ROUTES', []):
            return self.get_response(request)

        cache_key = f"{self.key_prefix}:{match.view_name}:{self._get_client_ip(request)}"
        now = time.time()
        bucket: List[float] = [timestamp for timestamp in self.cache.get(cache_key, []) if timestamp > now - self.window]
        if len(bucket) >= self.limit:
            return self._reject(match.view_name, retry_after=bucket[0] + self.window - now)

        bucket.append(now)
        self.cache.set(cache_key, bucket, timeout=self.window)
        return self.get_response(request)

    def _get_client_ip(self, request: HttpRequest) -> str:
        header = getattr(settings, 'THROTTLE_IP_HEADER', 'HTTP_X_FORWARDED_FOR')
        if header in request.META:
            return request.META[header].split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')

    def _reject(self, view_name: str, retry_after: float) -> JsonResponse:
        seconds = max(1, math.ceil(retry_after))
        response = JsonResponse(
            {
                'detail': f'Analysis rate limit of {self.limit} per {self.window}s exceeded.',
                'route': view_name,
                'retry_after': seconds,
            },
            status=429,
        )
        response['Retry-After'] = str(seconds)
        return response


def sliding_window_rate_throttle(get_response: Callable[[HttpRequest], HttpResponse]) -> SlidingWindowRateThrottle:
    return SlidingWindowRateThrottle(get_response)
