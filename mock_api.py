"""
In-memory compliance backend and the mock REST surface in front of it.

The Dash app talks to `ComplianceBackend`; `InMemoryBackend` serves the sample
data from config.py. `create_api_blueprint` exposes the same backend under
/api/v1/compliance on the Dash (Flask) server, with the envelope, pagination,
header-presence auth and per-client rate limit of the real gateway.
"""

from __future__ import annotations

import copy
import logging
import math
import time
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Callable, Optional

from flask import Blueprint, jsonify, request

import config
from config import (
    API_PREFIX,
    API_VERSION,
    AUDIT_STATUSES,
    DEFAULT_CONTROLS_PAGE_SIZE,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_TOKEN_LENGTH,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from models import Answer, AssessmentResult, Audit, Framework, OperationFailed
from scoring import dashboard_statistics, filter_controls, score_assessment, summarize_framework

logger = logging.getLogger(__name__)

AUDIT_FIELDS = ("framework_id", "title", "status", "start_date", "end_date", "auditor", "notes")


class InvalidParam(ValueError):
    pass


# -------------- Backend ---------------
class ComplianceBackend(ABC):
    """Narrow interface the dashboard uses; swap in a real service here."""

    @abstractmethod
    def fetch_frameworks(self) -> list[Framework]:
        ...

    def fetch_framework(self, framework_id: str) -> Optional[Framework]:
        return next((f for f in self.fetch_frameworks() if f.id == framework_id), None)

    def fetch_controls(self, framework_id: str) -> list:
        framework = self.fetch_framework(framework_id)
        if framework is None:
            raise OperationFailed(f"Framework with ID {framework_id} not found")
        return list(framework.controls)

    @abstractmethod
    def fetch_audits(self) -> list[Audit]:
        ...

    @abstractmethod
    def fetch_assessments(self) -> list[AssessmentResult]:
        ...

    @abstractmethod
    def submit_assessment(self, result: AssessmentResult) -> Framework:
        ...

    def fetch_audit(self, audit_id: str) -> Optional[Audit]:
        return next((a for a in self.fetch_audits() if a.id == audit_id), None)

    @abstractmethod
    def create_audit(self, fields: dict) -> Audit:
        ...

    @abstractmethod
    def update_audit(self, audit_id: str, changes: dict) -> Audit:
        ...

    @abstractmethod
    def delete_audit(self, audit_id: str) -> None:
        ...

    def validate_audit(self, fields: dict) -> dict:
        """
        Check the fields of an audit to be stored and return them normalised.

        Title, framework, auditor and both dates are required; the framework
        must exist, the status must be one of AUDIT_STATUSES and the audit
        cannot end before it starts. Raises InvalidParam.
        """
        out = {k: fields.get(k) for k in AUDIT_FIELDS}
        for key in ("title", "auditor", "notes"):
            out[key] = str(out[key] or "").strip()
        out["status"] = out["status"] or "scheduled"
        missing = [k for k in ("title", "framework_id", "auditor", "start_date", "end_date") if not out[k]]
        if missing:
            raise InvalidParam(f"Missing audit fields: {', '.join(missing)}")
        if self.fetch_framework(out["framework_id"]) is None:
            raise InvalidParam(f"Framework with ID {out['framework_id']} not found")
        if out["status"] not in AUDIT_STATUSES:
            raise InvalidParam(f"Audit status must be one of {', '.join(AUDIT_STATUSES)}")
        for key in ("start_date", "end_date"):
            day = out[key] if isinstance(out[key], date) else _parse_day(str(out[key]))
            if day is None:
                raise InvalidParam(f"{key} must be an ISO date (YYYY-MM-DD)")
            out[key] = day
        if out["end_date"] < out["start_date"]:
            raise InvalidParam("An audit cannot end before it starts")
        return out


class InMemoryBackend(ComplianceBackend):
    """Session-scoped store; nothing survives the process."""

    def __init__(self, frameworks: list[Framework], audits: Optional[list[Audit]] = None):
        self.frameworks = frameworks
        self.audits = audits or []
        self.assessments: list[AssessmentResult] = []

    @classmethod
    def from_config(cls) -> "InMemoryBackend":
        frameworks = [
            summarize_framework(Framework.from_dict(fw))
            for fw in copy.deepcopy(config.FRAMEWORKS)
        ]
        audits = [Audit.from_dict(a) for a in copy.deepcopy(config.AUDITS)]
        return cls(frameworks, audits)

    def fetch_frameworks(self) -> list[Framework]:
        return self.frameworks

    def fetch_audits(self) -> list[Audit]:
        return self.audits

    def fetch_assessments(self) -> list[AssessmentResult]:
        return self.assessments

    def submit_assessment(self, result: AssessmentResult) -> Framework:
        """Record the result and carry its score and status onto the framework."""
        framework = self.fetch_framework(result.framework_id)
        if framework is None:
            raise OperationFailed(f"Framework with ID {result.framework_id} not found")
        framework.score = result.score_pct
        framework.status = result.status
        framework.last_updated = (result.date or datetime.now(timezone.utc)).date()
        self.assessments.append(result)
        logger.info(
            "assessment recorded: framework=%s score=%s status=%s",
            framework.id,
            framework.score,
            framework.status,
        )
        return framework

    def create_audit(self, fields: dict) -> Audit:
        audit = Audit(id=f"audit-{uuid.uuid4().hex[:8]}", **self.validate_audit(fields))
        self.audits.append(audit)
        logger.info("audit created: id=%s framework=%s", audit.id, audit.framework_id)
        return audit

    def update_audit(self, audit_id: str, changes: dict) -> Audit:
        """Apply `changes` over the stored audit; findings and score are kept."""
        audit = self.fetch_audit(audit_id)
        if audit is None:
            raise OperationFailed(f"Audit with ID {audit_id} not found")
        merged = {k: getattr(audit, k) for k in AUDIT_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in AUDIT_FIELDS})
        for key, value in self.validate_audit(merged).items():
            setattr(audit, key, value)
        logger.info("audit updated: id=%s", audit.id)
        return audit

    def delete_audit(self, audit_id: str) -> None:
        audit = self.fetch_audit(audit_id)
        if audit is None:
            raise OperationFailed(f"Audit with ID {audit_id} not found")
        self.audits.remove(audit)
        logger.info("audit deleted: id=%s", audit_id)


# -------------- Gateway helpers ---------------
class ApiRateLimiter:
    """
    Fixed-window request counter per client key.

    :param window_seconds: window length
    :param max_requests: requests allowed per window
    :param clock: monotonic time source
    """

    def __init__(self, window_seconds=RATE_LIMIT_WINDOW_SECONDS, max_requests=RATE_LIMIT_MAX_REQUESTS,
                 clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.clock = clock
        self._store: dict[str, dict] = {}

    def check(self, key: str) -> bool:
        now = self.clock()
        for k in [k for k, v in self._store.items() if v["reset_at"] < now]:
            del self._store[k]
        entry = self._store.setdefault(
            key, {"count": 0, "reset_at": now + self.window_seconds}
        )
        if entry["count"] >= self.max_requests:
            return False
        entry["count"] += 1
        return True


def check_auth_token(header: Optional[str]) -> bool:
    # presence check only, no verification
    return bool(header) and header.startswith("Bearer ") and len(header) > MIN_TOKEN_LENGTH


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def api_response(data, pagination=None, status=200):
    body = {"success": True, "timestamp": _timestamp(), "version": API_VERSION, "data": data}
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


ERROR_STATUS = {
    "INVALID_PARAM": 400,
    "UNAUTHORIZED": 401,
    "NOT_FOUND": 404,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_ERROR": 500,
}


def error_response(code: str, message: str):
    body = {
        "success": False,
        "timestamp": _timestamp(),
        "version": API_VERSION,
        "error": {"code": code, "message": message},
    }
    return jsonify(body), ERROR_STATUS.get(code, 400)


def parse_pagination(args, default_size: int) -> tuple[int, int]:
    try:
        page = int(args.get("page", 1))
    except (TypeError, ValueError):
        raise InvalidParam("Page must be a positive integer")
    if page < 1:
        raise InvalidParam("Page must be a positive integer")
    try:
        page_size = int(args.get("pageSize", default_size))
    except (TypeError, ValueError):
        raise InvalidParam(f"PageSize must be between 1 and {MAX_PAGE_SIZE}")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidParam(f"PageSize must be between 1 and {MAX_PAGE_SIZE}")
    return page, page_size


def paginate(items: list, page: int, page_size: int) -> tuple[list, dict]:
    start = (page - 1) * page_size
    meta = {
        "page": page,
        "pageSize": page_size,
        "totalItems": len(items),
        "totalPages": math.ceil(len(items) / page_size),
    }
    return items[start:start + page_size], meta


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


# -------------- API models ---------------
def framework_api_model(fw: Framework) -> dict:
    d = fw.to_dict()
    counts = d["control_count"]
    return {
        "id": d["id"],
        "name": d["name"],
        "version": d["version"],
        "description": d["description"],
        "score": d["score"],
        "status": d["status"],
        "lastUpdated": d["last_updated"] or _timestamp(),
        "controlCount": {
            "total": counts["total"],
            "compliant": counts["compliant"],
            "nonCompliant": counts["non-compliant"],
            "partiallyCompliant": counts["partially-compliant"],
            "pending": counts["pending"],
        },
    }


def control_api_model(control, fw: Framework) -> dict:
    d = control.to_dict()
    return {
        "id": d["id"],
        "controlId": d["control_id"],
        "frameworkId": fw.id,
        "frameworkName": fw.name,
        "title": d["title"],
        "description": d["description"],
        "category": d["category"],
        "status": d["status"],
        "priority": d["priority"],
        "owner": d["owner"],
        "dueDate": d["due_date"],
    }


def assessment_api_model(result: AssessmentResult) -> dict:
    return {
        "frameworkId": result.framework_id,
        "frameworkName": result.framework_name,
        "date": result.date.isoformat() if result.date else None,
        "score": result.score,
        "status": result.status,
        "completedControls": result.completed_controls,
        "totalControls": result.total_controls,
        "controlResults": [
            {"controlId": cid, "status": status}
            for cid, status in result.control_results.items()
        ],
    }


def audit_api_model(audit: Audit) -> dict:
    d = audit.to_dict()
    return {
        "id": d["id"],
        "frameworkId": d["framework_id"],
        "title": d["title"],
        "status": d["status"],
        "startDate": d["start_date"],
        "endDate": d["end_date"],
        "auditor": d["auditor"],
        "findings": d["findings"],
        "score": d["score"],
        "notes": d["notes"],
    }


_AUDIT_API_KEYS = {
    "frameworkId": "framework_id",
    "title": "title",
    "status": "status",
    "startDate": "start_date",
    "endDate": "end_date",
    "auditor": "auditor",
    "notes": "notes",
}


def audit_fields_from_api(body: dict) -> dict:
    """camelCase request body -> backend audit fields; absent keys are left out."""
    return {field: body[key] for key, field in _AUDIT_API_KEYS.items() if key in body}


def _json_object() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidParam("Request body must be a JSON object")
    return body


def statistics_api_model(stats: dict) -> dict:
    counts = stats["controls_count"]
    return {
        "overallScore": stats["overall_score"],
        "frameworkCount": stats["framework_count"],
        "controlsCount": {
            "total": counts["total"],
            "compliant": counts["compliant"],
            "partiallyCompliant": counts["partially_compliant"],
            "nonCompliant": counts["non_compliant"],
        },
        "criticalIssues": stats["critical_issues"],
        "frameworkScores": stats["framework_scores"],
    }


# -------------- Blueprint ---------------
def create_api_blueprint(backend: ComplianceBackend, limiter: Optional[ApiRateLimiter] = None) -> Blueprint:
    """
    Build the /api/v1/compliance blueprint over `backend`.

    Every request is rate limited first, then checked for an Authorization
    header; either failure short-circuits with an error envelope.
    """
    bp = Blueprint("compliance_api", __name__, url_prefix=API_PREFIX)
    limiter = limiter or ApiRateLimiter()

    @bp.before_request
    def _gateway():
        client = (
            request.headers.get("X-Forwarded-For")
            or request.headers.get("X-Real-IP")
            or "unknown"
        )
        if not limiter.check(client):
            return error_response("TOO_MANY_REQUESTS", "Rate limit exceeded. Try again later.")
        if not check_auth_token(request.headers.get("Authorization")):
            return error_response("UNAUTHORIZED", "Invalid or missing authentication token")
        return None

    @bp.errorhandler(InvalidParam)
    def _invalid_param(exc):
        return error_response("INVALID_PARAM", str(exc))

    @bp.errorhandler(OperationFailed)
    def _not_found(exc):
        return error_response("NOT_FOUND", str(exc))

    @bp.errorhandler(Exception)
    def _internal(exc):
        logger.exception("compliance API request failed: %s %s", request.method, request.path)
        return error_response(
            "INTERNAL_ERROR", "An internal error occurred while processing the request"
        )

    def _framework_or_404(framework_id: str) -> Framework:
        fw = backend.fetch_framework(framework_id)
        if fw is None:
            raise OperationFailed(f"Framework with ID {framework_id} not found")
        return fw

    @bp.get("/frameworks")
    def list_frameworks():
        page, size = parse_pagination(request.args, DEFAULT_PAGE_SIZE)
        items, meta = paginate(backend.fetch_frameworks(), page, size)
        return api_response([framework_api_model(f) for f in items], meta)

    @bp.get("/frameworks/<framework_id>")
    def get_framework(framework_id):
        return api_response(framework_api_model(_framework_or_404(framework_id)))

    @bp.get("/frameworks/<framework_id>/controls")
    def list_controls(framework_id):
        fw = _framework_or_404(framework_id)
        page, size = parse_pagination(request.args, DEFAULT_CONTROLS_PAGE_SIZE)
        controls = filter_controls(
            backend.fetch_controls(fw.id),
            status=request.args.get("status"),
            priority=request.args.get("priority"),
            category=request.args.get("category"),
        )
        items, meta = paginate(controls, page, size)
        return api_response([control_api_model(c, fw) for c in items], meta)

    @bp.get("/assessments")
    def list_assessments():
        results = list(backend.fetch_assessments())
        framework_id = request.args.get("frameworkId")
        if framework_id:
            results = [r for r in results if r.framework_id == framework_id]
        since = _parse_day(request.args.get("fromDate"))
        if since:
            results = [r for r in results if r.date and r.date.date() >= since]
        until = _parse_day(request.args.get("toDate"))
        if until:
            results = [r for r in results if r.date and r.date.date() <= until]
        page, size = parse_pagination(request.args, DEFAULT_PAGE_SIZE)
        items, meta = paginate(results, page, size)
        return api_response([assessment_api_model(r) for r in items], meta)

    @bp.post("/assessments")
    def submit_assessment():
        body = _json_object()
        fw = backend.fetch_framework(body.get("frameworkId") or "")
        if fw is None:
            raise InvalidParam("frameworkId must name an existing framework")
        raw_answers = body.get("answers") or []
        if not isinstance(raw_answers, list):
            raise InvalidParam("answers must be a list")
        submitted = {a.get("questionId"): a for a in raw_answers if isinstance(a, dict)}
        answers = []
        for c in fw.controls:
            for q in c.questions:
                raw = submitted.get(q.id, {})
                value = raw.get("value")
                if not q.accepts(value):
                    raise InvalidParam(f"{value!r} is not a valid answer to {q.id}")
                answers.append(
                    Answer(question_id=q.id, control_id=c.id, value=value,
                           notes=raw.get("notes") or "")
                )
        result = score_assessment(
            fw, fw.controls, answers, assessed_on=datetime.now(timezone.utc)
        )
        backend.submit_assessment(result)
        return api_response(assessment_api_model(result), status=201)

    @bp.get("/audits")
    def list_audits():
        audits = list(backend.fetch_audits())
        if request.args.get("frameworkId"):
            audits = [a for a in audits if a.framework_id == request.args["frameworkId"]]
        if request.args.get("status"):
            audits = [a for a in audits if a.status == request.args["status"]]
        page, size = parse_pagination(request.args, DEFAULT_PAGE_SIZE)
        items, meta = paginate(audits, page, size)
        return api_response([audit_api_model(a) for a in items], meta)

    @bp.post("/audits")
    def create_audit():
        audit = backend.create_audit(audit_fields_from_api(_json_object()))
        return api_response(audit_api_model(audit), status=201)

    @bp.put("/audits/<audit_id>")
    def update_audit(audit_id):
        audit = backend.update_audit(audit_id, audit_fields_from_api(_json_object()))
        return api_response(audit_api_model(audit))

    @bp.delete("/audits/<audit_id>")
    def delete_audit(audit_id):
        backend.delete_audit(audit_id)
        return api_response({"id": audit_id})

    @bp.get("/statistics")
    def statistics():
        return api_response(statistics_api_model(dashboard_statistics(backend.fetch_frameworks())))

    return bp
