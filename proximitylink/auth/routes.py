"""Routes for the auth blueprint."""

from firebase_admin import auth, firestore
from flask import (
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from . import bp
from .forms import LoginForm


@bp.route("/login", methods=["GET"])
def login():
    """
    Renders the login page.
    The actual login process is handled by the Firebase client-side SDK.
    """
    if g.user:
        return redirect(url_for("user.dashboard"))
    form = LoginForm()
    return render_template("auth/login.html", form=form)


@bp.route("/session_login", methods=["POST"])
def session_login():
    """
    Called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    payload = request.get_json(silent=True) or {}
    id_token = payload.get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing ID token."}), 400

    try:
        decoded_token = auth.verify_id_token(id_token)
        uid = decoded_token["uid"]
        db = firestore.client()
        user_doc = db.collection("users").document(uid).get()
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        return (
            jsonify({"status": "error", "message": "Invalid token or server error."}),
            401,
        )

    if not user_doc.exists:
        return (
            jsonify({"status": "error", "message": "User not found in Firestore."}),
            404,
        )

    session["user_id"] = uid
    current_app.logger.info(f"User {uid} signed in.")
    return jsonify({"status": "success"})


@bp.route("/logout")
def logout():
    """Clear the server-side session; the client SDK signs out of Firebase."""
    session.clear()
    flash("You have been logged out.", "success")
    return redirect(url_for("auth.login"))
