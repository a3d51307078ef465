from django.conf import settings


def store(request):
    return {
        "STORE_NAME": getattr(settings, "STORE_NAME", "BitesQuicky"),
        "STORE_TAGLINE": getattr(settings, "STORE_TAGLINE", ""),
        "STORE_PHONE_DISPLAY": getattr(settings, "STORE_PHONE_DISPLAY", ""),
    }
