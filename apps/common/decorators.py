from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import HttpResponseForbidden


def staff_required(view):
    """Dashboard guard: authenticated session plus the Django staff flag."""

    @login_required
    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_staff:
            return HttpResponseForbidden("Staff only")
        return view(request, *args, **kwargs)

    return _wrapped
