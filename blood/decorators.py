from functools import wraps

from django.contrib import messages
from django.contrib.auth.decorators import login_required
from django.shortcuts import redirect

from .services.access import resolve_actor


def admin_required(view_func):
    """Resolve ``request.actor`` and bounce non-admins to their portal."""

    @wraps(view_func)
    @login_required
    def wrapper(request, *args, **kwargs):
        actor = resolve_actor(request.user)
        if not actor.is_admin:
            messages.error(request, 'Admin access required.')
            return redirect('donor-dashboard')
        request.actor = actor
        return view_func(request, *args, **kwargs)

    return wrapper


def donor_required(view_func):
    """Resolve ``request.actor`` for the donor portal; admins go to the back office."""

    @wraps(view_func)
    @login_required
    def wrapper(request, *args, **kwargs):
        actor = resolve_actor(request.user)
        if actor.is_admin:
            return redirect('admin-dashboard')
        request.actor = actor
        return view_func(request, *args, **kwargs)

    return wrapper
