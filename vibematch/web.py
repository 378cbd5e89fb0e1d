"""Flask application factory and JSON API routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import Blueprint, Flask, current_app, g, jsonify, request

import config
from vibematch.errors import AuthenticationError, PermissionDeniedError, ServiceError, ValidationError
from vibematch.services import (
    AnalyticsService,
    MatchService,
    ProfileService,
    ProjectService,
    Storage,
    SuggestionService,
)
from vibematch.services.auth import AuthStrategy, build_auth_strategy, resolve_current_profile

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")


@dataclass
class Services:
    """Everything a request handler needs, built once per app."""
    storage: Storage
    auth: AuthStrategy
    profiles: ProfileService
    projects: ProjectService
    matches: MatchService
    suggestions: SuggestionService
    analytics: AnalyticsService


def create_app(
    storage: Storage | None = None,
    llm_service=None,
    auth_strategy: AuthStrategy | None = None,
) -> Flask:
    """Build the app. Anything not injected comes from ``config``."""
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.json.sort_keys = False

    storage = storage if storage is not None else Storage(config.STORE_FILE or None)
    auth = auth_strategy or build_auth_strategy(config.AUTH_MODE, config.APP_ENV)
    app.extensions["vibematch"] = Services(
        storage=storage,
        auth=auth,
        profiles=ProfileService(storage),
        projects=ProjectService(storage),
        matches=MatchService(storage),
        suggestions=SuggestionService(storage, llm_service=llm_service),
        analytics=AnalyticsService(storage),
    )
    app.register_blueprint(api)

    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_internal_error(e):
        logger.exception("[api] unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    logger.info("[app] auth=%s env=%s", type(auth).__name__, config.APP_ENV)
    return app


def services() -> Services:
    return current_app.extensions["vibematch"]


def login_required(f):
    """Decorator to require a resolved profile for API endpoints."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        svc = services()
        profile = resolve_current_profile(svc.auth, svc.storage, request)
        if profile is None:
            raise AuthenticationError("Authentication required")
        g.current_profile = profile
        return f(*args, **kwargs)
    return decorated_function


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("body", "must be a JSON object")
    return data


def dump(records) -> list[dict[str, Any]]:
    return [r.to_dict() for r in records]


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------

@api.route("/auth/user")
def auth_user():
    """Return the caller's account and profile."""
    svc = services()
    user_id = svc.auth.resolve_user_id(request)
    if not user_id:
        raise AuthenticationError("Unauthorized")
    user = svc.auth.ensure_user(svc.storage, user_id)
    if user is None:
        raise AuthenticationError("Unauthorized")
    profile = svc.storage.get_profile_by_user_id(user_id)
    return jsonify({**user.to_dict(), "profile": profile.to_dict() if profile else None})


# ----------------------------------------------------------------------
# Profiles
# ----------------------------------------------------------------------

@api.route("/profiles")
def list_profiles():
    return jsonify(dump(services().profiles.list_profiles(request.args.get("role"))))


@api.route("/profiles/<profile_id>")
def get_profile(profile_id):
    return jsonify(services().profiles.get_profile(profile_id).to_dict())


@api.route("/profiles", methods=["POST"])
def create_profile():
    """Create the caller's profile (one per account)."""
    svc = services()
    user_id = svc.auth.resolve_user_id(request)
    if not user_id:
        raise AuthenticationError("Authentication required")
    profile = svc.profiles.create_profile(user_id, json_body())
    return jsonify(profile.to_dict()), 201


@api.route("/profiles/<profile_id>", methods=["PATCH"])
@login_required
def update_profile(profile_id):
    profile = services().profiles.update_profile(g.current_profile, profile_id, json_body())
    return jsonify(profile.to_dict())


# ----------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------

@api.route("/projects")
def list_projects():
    owner_id = request.args.get("ownerId") or None
    return jsonify(dump(services().projects.list_projects(owner_id)))


@api.route("/projects/<project_id>")
def get_project(project_id):
    return jsonify(services().projects.get_project(project_id).to_dict())


@api.route("/projects", methods=["POST"])
@login_required
def create_project():
    project = services().projects.create_project(g.current_profile, json_body())
    return jsonify(project.to_dict()), 201


@api.route("/projects/<project_id>", methods=["PATCH"])
@login_required
def update_project(project_id):
    project = services().projects.update_project(g.current_profile, project_id, json_body())
    return jsonify(project.to_dict())


# ----------------------------------------------------------------------
# Team
# ----------------------------------------------------------------------

@api.route("/projects/<project_id>/members")
@login_required
def list_members(project_id):
    return jsonify(dump(services().projects.list_members(g.current_profile, project_id)))


@api.route("/projects/<project_id>/members", methods=["POST"])
@login_required
def add_member(project_id):
    member = services().projects.add_member(g.current_profile, project_id, json_body())
    return jsonify(member.to_dict()), 201


@api.route("/project-members/<member_id>", methods=["PATCH"])
@login_required
def update_member_access(member_id):
    """Only ``hasAccess`` may change, and only the owner may change it."""
    data = json_body()
    unexpected = sorted(set(data) - {"hasAccess"})
    if unexpected:
        raise ValidationError(unexpected[0], "cannot be updated")
    member = services().projects.set_member_access(g.current_profile, member_id, data.get("hasAccess"))
    return jsonify(member.to_dict())


# ----------------------------------------------------------------------
# Tasks
# ----------------------------------------------------------------------

@api.route("/projects/<project_id>/tasks")
@login_required
def list_tasks(project_id):
    return jsonify(dump(services().projects.list_tasks(g.current_profile, project_id)))


@api.route("/projects/<project_id>/tasks", methods=["POST"])
@login_required
def create_task(project_id):
    task = services().projects.create_task(g.current_profile, project_id, json_body())
    return jsonify(task.to_dict()), 201


@api.route("/tasks/<task_id>")
@login_required
def get_task(task_id):
    return jsonify(services().projects.get_task(g.current_profile, task_id).to_dict())


@api.route("/tasks/<task_id>", methods=["PATCH"])
@login_required
def update_task(task_id):
    task = services().projects.update_task(g.current_profile, task_id, json_body())
    return jsonify(task.to_dict())


# ----------------------------------------------------------------------
# Code repositories
# ----------------------------------------------------------------------

@api.route("/projects/<project_id>/repositories")
@login_required
def list_repositories(project_id):
    return jsonify(dump(services().projects.list_repositories(g.current_profile, project_id)))


@api.route("/projects/<project_id>/repositories", methods=["POST"])
@login_required
def create_repository(project_id):
    repo = services().projects.create_repository(g.current_profile, project_id, json_body())
    return jsonify(repo.to_dict()), 201


@api.route("/repositories/<repo_id>")
@login_required
def get_repository(repo_id):
    return jsonify(services().projects.get_repository(g.current_profile, repo_id).to_dict())


@api.route("/repositories/<repo_id>", methods=["PATCH"])
@login_required
def update_repository(repo_id):
    repo = services().projects.update_repository(g.current_profile, repo_id, json_body())
    return jsonify(repo.to_dict())


# ----------------------------------------------------------------------
# Documents
# ----------------------------------------------------------------------

@api.route("/projects/<project_id>/documents")
@login_required
def list_documents(project_id):
    return jsonify(dump(services().projects.list_documents(g.current_profile, project_id)))


@api.route("/projects/<project_id>/documents", methods=["POST"])
@login_required
def create_document(project_id):
    doc = services().projects.create_document(g.current_profile, project_id, json_body())
    return jsonify(doc.to_dict()), 201


@api.route("/documents/<doc_id>", methods=["DELETE"])
@login_required
def delete_document(doc_id):
    services().projects.delete_document(g.current_profile, doc_id)
    return "", 204


# ----------------------------------------------------------------------
# Contributions
# ----------------------------------------------------------------------

@api.route("/projects/<project_id>/contributions")
@login_required
def list_contributions(project_id):
    return jsonify(dump(services().projects.list_contributions(g.current_profile, project_id)))


@api.route("/projects/<project_id>/contributions", methods=["POST"])
@login_required
def create_contribution(project_id):
    contribution = services().projects.create_contribution(g.current_profile, project_id, json_body())
    return jsonify(contribution.to_dict()), 201


@api.route("/projects/<project_id>/contributions/breakdown")
@login_required
def contribution_breakdown(project_id):
    return jsonify(services().projects.contribution_breakdown(g.current_profile, project_id))


# ----------------------------------------------------------------------
# Matches
# ----------------------------------------------------------------------

@api.route("/matches/<profile_id>")
@login_required
def list_matches(profile_id):
    if profile_id != g.current_profile.id:
        raise PermissionDeniedError("Cannot access another user's matches")
    return jsonify(dump(services().matches.list_matches(profile_id)))


@api.route("/matches", methods=["POST"])
@login_required
def create_match():
    match = services().matches.request_match(g.current_profile, json_body())
    return jsonify(match.to_dict()), 201


@api.route("/matches/<match_id>", methods=["PATCH"])
@login_required
def respond_to_match(match_id):
    match = services().matches.respond(g.current_profile, match_id, json_body().get("status"))
    return jsonify(match.to_dict())


@api.route("/matches/suggestions/<profile_id>")
@login_required
def match_suggestions(profile_id):
    """AI-powered suggestions for the caller's own profile."""
    if profile_id != g.current_profile.id:
        raise PermissionDeniedError("Cannot access another user's suggestions")
    suggestions = services().suggestions.suggest(
        g.current_profile,
        role=request.args.get("role") or None,
        limit=request.args.get("limit"),
    )
    return jsonify(dump(suggestions))


@api.route("/matches/explain/<profile_id>")
@login_required
def explain_match(profile_id):
    svc = services()
    other = svc.profiles.get_profile(profile_id)
    return jsonify(svc.suggestions.explain_match(g.current_profile, other))


# ----------------------------------------------------------------------
# Analytics
# ----------------------------------------------------------------------

@api.route("/analytics/overview")
def analytics_overview():
    return jsonify(services().analytics.overview())


@api.route("/analytics/demographics")
def analytics_demographics():
    return jsonify(services().analytics.demographics())


@api.route("/analytics/growth")
def analytics_growth():
    return jsonify(services().analytics.growth(request.args.get("period")))


@api.route("/analytics/users-by-role")
def analytics_users_by_role():
    return jsonify(services().analytics.users_by_role())
