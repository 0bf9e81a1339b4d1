import logging
from datetime import datetime

from django.conf import settings
from django.contrib import messages
from django.shortcuts import render, redirect
from django.utils import timezone
from django.views.decorators.http import require_POST

from blood.decorators import donor_required
from blood.exceptions import LifeDropError
from . import services
from .forms import AppointmentForm

logger = logging.getLogger(__name__)


@donor_required
def schedule_appointment_view(request):
    actor = request.actor

    if request.method == 'POST':
        form = AppointmentForm(request.POST)
        if form.is_valid():
            try:
                appointment = services.create_appointment(actor, **form.cleaned_data)
            except LifeDropError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(
                    request,
                    f'Appointment booked for {appointment.appointment_date:%b %d, %Y} '
                    f'at {appointment.appointment_time:%H:%M}.',
                )
                return redirect('appointment-schedule')
        else:
            for field, errors in form.errors.items():
                for error in errors:
                    messages.error(request, f"{field.replace('_', ' ').title()}: {error}")
    else:
        form = AppointmentForm()

    selected_date = timezone.localdate()
    raw_date = request.GET.get('date')
    if raw_date:
        try:
            selected_date = datetime.strptime(raw_date, '%Y-%m-%d').date()
        except ValueError:
            pass

    context = {
        'form': form,
        'appointments': services.list_user_appointments(actor),
        'selected_date': selected_date,
        'taken_slots': services.taken_slots(actor, selected_date),
        'slots': getattr(settings, 'APPOINTMENT_SLOTS', []),
    }
    return render(request, 'appointment/schedule.html', context)


@donor_required
@require_POST
def cancel_appointment_view(request, pk):
    try:
        services.cancel_appointment(request.actor, pk)
    except LifeDropError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, 'Appointment cancelled.')
    return redirect('appointment-schedule')
