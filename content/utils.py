# content/utils.py

import re

UMLAUTS = {'ä': 'ae', 'ö': 'oe', 'ü': 'ue', 'ß': 'ss'}


def slugify_title(title):
    """
    URL slug for a German title: 'Frühling in Ligurien' -> 'fruehling-in-ligurien'.
    Titles without any usable character give 'post'.
    """
    slug = (title or '').lower()
    for umlaut, replacement in UMLAUTS.items():
        slug = slug.replace(umlaut, replacement)
    slug = re.sub(r'[^a-z0-9]+', '-', slug).strip('-')
    return slug or 'post'


def generate_unique_slug(model, title, instance_pk=None):
    base = slugify_title(title)
    slug = base
    counter = 2
    queryset = model.objects.exclude(pk=instance_pk) if instance_pk else model.objects.all()
    while queryset.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug
