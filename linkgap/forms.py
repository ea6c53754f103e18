"""Forms for the linkgap app.

The analyze form validates the page submitted for analysis and the optional
set of other pages it should be compared with.
"""

from __future__ import annotations

from typing import List

from django import forms
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator

from .engine.types import CandidatePage

DEFAULT_MAX_PAGES = 50


class AnalyzeForm(forms.Form):
    """Input for a single page analysis."""

    url = forms.URLField(
        assume_scheme='https',
        label='Page URL',
        help_text='Absolute URL of the page being analysed (e.g. https://example.com/blog/post).',
    )
    title = forms.CharField(
        required=False,
        max_length=500,
        label='Page title',
    )
    html = forms.CharField(
        strip=False,
        label='Page HTML',
        help_text='Full HTML of the rendered page.',
    )
    pages = forms.JSONField(
        required=False,
        label='Other pages',
        help_text='Optional list of {"url", "title", "text" or "html"} objects to compare against.',
    )

    def clean_pages(self) -> List[CandidatePage] | None:
        """Parse the comparison pages; ``None`` means no semantic comparison was requested."""

        raw = self.cleaned_data.get('pages')
        if raw is None:
            # JSONField reads an empty list as an empty value
            return [] if self.data.get('pages') == [] else None
        if not isinstance(raw, list):
            raise ValidationError('Other pages must be a list of objects.')

        limit = getattr(settings, 'LINKGAP_MAX_PAGES', DEFAULT_MAX_PAGES)
        if len(raw) > limit:
            raise ValidationError(f'At most {limit} comparison pages are accepted.')

        validate_url = URLValidator()
        candidates: List[CandidatePage] = []
        for index, item in enumerate(raw, start=1):
            if not isinstance(item, dict):
                raise ValidationError(f'Page {index}: expected an object.')
            url = str(item.get('url') or '').strip()
            try:
                validate_url(url)
            except ValidationError:
                raise ValidationError(f'Page {index}: "{url}" is not a valid URL.')
            text = str(item.get('text') or '')
            html = item.get('html')
            if not text and not html:
                raise ValidationError(f'Page {index}: provide either "text" or "html".')
            embedding = item.get('embedding')
            candidates.append(
                CandidatePage(
                    url=url,
                    title=str(item.get('title') or ''),
                    text=text,
                    html=str(html) if html else None,
                    embedding=str(embedding) if embedding else None,
                )
            )
        return candidates
