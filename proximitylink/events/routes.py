"""Routes for the events blueprint."""

from firebase_admin import firestore
from flask import (
    abort,
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from proximitylink.auth.decorators import login_required
from proximitylink.constants import FILL_ALL_FIELDS
from proximitylink.error_handlers import wants_json
from proximitylink.errors import AppError
from proximitylink.services.calendar_grid import (
    day_summary,
    events_for_day,
    parse_day,
    to_local_input,
)
from proximitylink.services.event_service import EventService, load_calendar
from proximitylink.services.group_service import GroupService

from . import bp
from .forms import EventForm


def _flash_form_errors(form):
    messages = [message for errors in form.errors.values() for message in errors]
    flash(FILL_ALL_FIELDS if FILL_ALL_FIELDS in messages else messages[0], "danger")


@bp.route("/group/<string:group_id>/events", methods=["GET"])
@login_required
def list_events(group_id):
    """Show a group's calendar for one month."""
    db = firestore.client()
    group = GroupService.get_group(db, group_id)
    cal = load_calendar(db, group_id, request.args.get("month"))

    if wants_json():
        if cal["error"]:
            return jsonify({"ok": False, "error": cal["error"], "events": []}), 500
        return jsonify({"ok": True, "events": cal["events"]})

    if cal["error"]:
        flash(cal["error"], "danger")
    return render_template(
        "events/calendar.html",
        group=group,
        group_id=group_id,
        calendar=cal,
        is_owner=group.get("owner_id") == g.user["uid"],
    )


@bp.route("/group/<string:group_id>/events/day/<string:day>", methods=["GET"])
@login_required
def view_day(group_id, day):
    """List the events that cover one day."""
    selected = parse_day(day)
    if selected is None:
        abort(404)

    db = firestore.client()
    group = GroupService.get_group(db, group_id)
    cal = load_calendar(db, group_id, selected.strftime("%Y-%m"), selected)
    day_events = events_for_day(cal["events"], selected)

    if wants_json():
        return jsonify(
            {
                "ok": cal["error"] is None,
                "day": selected.isoformat(),
                "summary": day_summary(len(day_events)),
                "events": day_events,
            }
        )

    if cal["error"]:
        flash(cal["error"], "danger")
    return render_template(
        "events/event_day.html",
        group=group,
        group_id=group_id,
        day=selected,
        events=day_events,
        summary=day_summary(len(day_events)),
        calendar=cal,
        is_owner=group.get("owner_id") == g.user["uid"],
    )


@bp.route("/group/<string:group_id>/events/new", methods=["GET", "POST"])
@login_required
def create_event(group_id):
    """Add an event to a group's calendar. Owner only."""
    db = firestore.client()
    group = GroupService.get_group(db, group_id)
    if group.get("owner_id") != g.user["uid"]:
        flash("Only the group owner can manage events.", "danger")
        return redirect(url_for("group.view_group", group_id=group_id))

    form = EventForm()
    initial = {}
    selected = parse_day(request.args.get("day", ""))
    if request.method == "GET" and selected:
        initial = {
            "start": f"{selected.isoformat()}T09:00",
            "end": f"{selected.isoformat()}T10:00",
        }

    if form.validate_on_submit():
        try:
            EventService.create_event(
                db,
                group_id,
                g.user["uid"],
                form.title.data,
                form.description.data,
                form.start_time.data,
                form.end_time.data,
            )
            flash("Event added.", "success")
            return redirect(url_for("group.view_group", group_id=group_id))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error adding event to group {group_id}: {e}")
            flash("Could not save the event.", "danger")
    elif form.errors:
        _flash_form_errors(form)

    return render_template(
        "events/event_form.html",
        form=form,
        group=group,
        group_id=group_id,
        event=None,
        initial=initial,
    )


@bp.route("/events/<string:event_id>/edit", methods=["GET", "POST"])
@login_required
def edit_event(event_id):
    """Edit an event. Owner only."""
    db = firestore.client()
    event = EventService.get_event(db, event_id)
    group_id = event.get("group_id", "")
    group = GroupService.get_group(db, group_id)
    if group.get("owner_id") != g.user["uid"]:
        flash("Only the group owner can manage events.", "danger")
        return redirect(url_for("group.view_group", group_id=group_id))

    form = EventForm()
    initial = {}
    if request.method == "GET":
        form.title.data = event.get("title")
        form.description.data = event.get("description") or ""
        initial = {
            "start": to_local_input(event.get("start_time")),
            "end": to_local_input(event.get("end_time")),
        }

    if form.validate_on_submit():
        try:
            EventService.update_event(
                db,
                event_id,
                g.user["uid"],
                form.title.data,
                form.description.data,
                form.start_time.data,
                form.end_time.data,
            )
            flash("Event updated.", "success")
            return redirect(url_for("group.view_group", group_id=group_id))
        except AppError as e:
            flash(e.message, "danger")
        except Exception as e:
            current_app.logger.error(f"Error updating event {event_id}: {e}")
            flash("Could not save the event.", "danger")
    elif form.errors:
        _flash_form_errors(form)

    return render_template(
        "events/event_form.html",
        form=form,
        group=group,
        group_id=group_id,
        event=event,
        initial=initial,
    )


@bp.route("/events/<string:event_id>/delete", methods=["POST"])
@login_required
def delete_event(event_id):
    """Delete an event. Owner only."""
    db = firestore.client()
    try:
        group_id = EventService.delete_event(db, event_id, g.user["uid"])
    except AppError as e:
        flash(e.message, "danger")
        return redirect(request.referrer or url_for("user.dashboard"))
    except Exception as e:
        current_app.logger.error(f"Error deleting event {event_id}: {e}")
        flash("Could not delete the event.", "danger")
        return redirect(request.referrer or url_for("user.dashboard"))

    flash("Event deleted.", "success")
    return redirect(url_for("group.view_group", group_id=group_id))
