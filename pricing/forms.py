# pricing/forms.py

from django import forms

from core.models import LANGUAGE_CHOICES
from .models import Fee


class FeeAdminForm(forms.ModelForm):
    """
    Edits the per-language fee name as one text field per language instead
    of raw JSON.
    """

    class Meta:
        model = Fee
        fields = ['type', 'amount', 'calculation_type', 'payment_location', 'is_active']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        names = self.instance.name or {}
        for code, label in LANGUAGE_CHOICES:
            self.fields[f'name_{code}'] = forms.CharField(
                label=f"Name ({label})",
                required=(code == 'de'),
                max_length=255,
                initial=names.get(code, ''),
            )
        # Name fields first.
        order = [f'name_{code}' for code, _ in LANGUAGE_CHOICES]
        self.order_fields(order + [name for name in self.fields if name not in order])

    def clean(self):
        cleaned_data = super().clean()
        self.instance.name = {
            code: cleaned_data.get(f'name_{code}', '').strip()
            for code, _ in LANGUAGE_CHOICES
            if cleaned_data.get(f'name_{code}', '').strip()
        }
        return cleaned_data
