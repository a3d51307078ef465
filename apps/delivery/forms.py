from django import forms

from apps.common.validators import validate_upload

from .models import DeliveryFeeTier, MenuItem, PickupZone


class CheckoutForm(forms.Form):
    contact_name = forms.CharField(max_length=160, required=False, widget=forms.TextInput(attrs={"class": "input", "autocomplete": "name"}))
    contact_phone = forms.CharField(max_length=40, required=False, widget=forms.TextInput(attrs={"class": "input", "placeholder": "+254 7XX XXX XXX", "autocomplete": "tel"}))
    pickup_zone_id = forms.CharField(required=False)
    room_number = forms.CharField(max_length=40, required=False, widget=forms.TextInput(attrs={"class": "input"}))
    special_instructions = forms.CharField(required=False, max_length=500, widget=forms.Textarea(attrs={"rows": 2, "class": "textarea"}))
    idempotency_key = forms.CharField(max_length=64, required=False, widget=forms.HiddenInput)


class MenuItemForm(forms.ModelForm):
    class Meta:
        model = MenuItem
        fields = [
            "title",
            "description",
            "price",
            "image",
            "image_url",
            "category",
            "is_negotiable",
            "is_available",
            "pinned",
        ]
        widgets = {
            "title": forms.TextInput(attrs={"class": "input"}),
            "description": forms.Textarea(attrs={"rows": 3, "class": "textarea"}),
            "price": forms.NumberInput(attrs={"class": "input", "min": 0}),
            "image_url": forms.URLInput(attrs={"class": "input"}),
            "category": forms.Select(attrs={"class": "select"}),
        }

    def clean_image(self):
        img = self.cleaned_data.get("image")
        # Only fresh uploads need checking; an existing FieldFile was validated when stored
        if img and hasattr(img, "content_type"):
            validate_upload(img)
        return img


class DeliveryFeeTierForm(forms.ModelForm):
    class Meta:
        model = DeliveryFeeTier
        fields = ["min_amount", "max_amount", "fee"]
        widgets = {
            "min_amount": forms.NumberInput(attrs={"class": "input", "min": 0}),
            "max_amount": forms.NumberInput(attrs={"class": "input", "min": 0}),
            "fee": forms.NumberInput(attrs={"class": "input", "min": 0}),
        }

    def clean(self):
        data = super().clean()
        lo, hi = data.get("min_amount"), data.get("max_amount")
        if lo is not None and hi is not None and hi < lo:
            self.add_error("max_amount", "Max amount must be greater than or equal to min amount.")
        return data


class PickupZoneForm(forms.ModelForm):
    class Meta:
        model = PickupZone
        fields = ["name", "requires_room_number"]
        widgets = {"name": forms.TextInput(attrs={"class": "input"})}
