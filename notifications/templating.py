# notifications/templating.py
# FEATURE: Placeholder syntax of the e-mail templates editable in the back-office.
#
#   {{key}}                           value from the data dict
#   {{#if key}}...{{/if}}             kept only when data[key] is truthy
#   {{#each key}}...{{this.x}}...{{/each}}
#                                     repeated per list item, joined by newlines

import logging
import re

from django.utils.html import conditional_escape

from core.models import DEFAULT_LANGUAGE
from .models import EmailTemplate, EmailTemplatePart

logger = logging.getLogger(__name__)

IF_BLOCK = re.compile(r'{{#if ([^}]+)}}(.*?){{/if}}', re.DOTALL)
EACH_BLOCK = re.compile(r'{{#each ([^}]+)}}(.*?){{/each}}', re.DOTALL)


class TemplateNotFound(Exception):
    pass


def _value(value, escape):
    return str(conditional_escape(value)) if escape else str(value)


def _render_item(content, item, escape=False):
    if isinstance(item, dict):
        for key, value in item.items():
            content = content.replace(f'{{{{this.{key}}}}}', _value(value, escape))
        return content
    return content.replace('{{this}}', _value(item, escape))


def process_template(text, data, escape=False):
    """
    Fills a template text with ``data``. Placeholders without a value are
    left as they are. With ``escape`` the values are HTML-escaped, the
    template text itself is kept as written.
    """
    data = data or {}

    text = IF_BLOCK.sub(lambda m: m.group(2) if data.get(m.group(1).strip()) else '', text)

    def render_each(match):
        items = data.get(match.group(1).strip())
        if not isinstance(items, (list, tuple)):
            return ''
        return '\n'.join(_render_item(match.group(2), item, escape) for item in items)

    text = EACH_BLOCK.sub(render_each, text)

    for key, value in data.items():
        text = text.replace(f'{{{{{key}}}}}', _value(value, escape))
    return text


def get_template(name, language=DEFAULT_LANGUAGE):
    """
    Subject and body of an active template in ``language`` (German when the
    translation is missing), the body wrapped in the shared header and footer.
    """
    template = EmailTemplate.objects.filter(name=name, is_active=True).first()
    if template is None:
        logger.warning("No active e-mail template named %s", name)
        raise TemplateNotFound(f"E-Mail-Vorlage '{name}' wurde nicht gefunden oder ist inaktiv.")

    return compose_template(template, language)


def compose_template(template, language=DEFAULT_LANGUAGE):
    parts = {part.name: part.get_content(language) for part in EmailTemplatePart.objects.all()}
    return {
        'subject': template.get_subject(language),
        'body': f"{parts.get('header', '')}{template.get_body(language)}{parts.get('footer', '')}",
    }
