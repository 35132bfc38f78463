# app.py

import logging

import dash
import dash_daq as daq
from dash import ALL, Input, Output, State, ctx, dcc, html

from alerts import compliance_alerts
from config import (ANSWER_OPTIONS, AUDIT_STATUSES, AUDITS, CONTROL_STATUSES,
                    FRAMEWORKS, PRIORITIES)
from figures import (framework_bar_figure, heatmap_figure, priority_figure,
                     status_pie_figure)
from mock_api import InMemoryBackend, InvalidParam, create_api_blueprint
from models import AssessmentResult, OperationFailed
from reports import ReportService, build_report, write_csv, write_pdf, write_pptx
from scoring import (coverage_matrix, dashboard_statistics, filter_controls,
                     open_controls, priority_compliance)
from wizard import STEP_LABELS, AssessmentWizard, Step

logger = logging.getLogger(__name__)

BACKEND = InMemoryBackend.from_config()
REPORTS = ReportService()

app = dash.Dash(__name__, suppress_callback_exceptions=True)
app.title = "Compliance Management"
server = app.server
server.register_blueprint(create_api_blueprint(BACKEND))


def _validate_config() -> None:
    """
    Check the sanity of the sample data in `config.py`.

    Logs warnings for duplicate control ids, unknown statuses or priorities,
    and audits that point at unknown frameworks.
    """
    fw_ids = {fw["id"] for fw in FRAMEWORKS}
    seen, dupes = set(), []
    for fw in FRAMEWORKS:
        for c in fw["controls"]:
            if c["id"] in seen:
                dupes.append(c["id"])
            seen.add(c["id"])
    bad_status = [
        c["id"]
        for fw in FRAMEWORKS
        for c in fw["controls"]
        if c.get("status", "pending") not in CONTROL_STATUSES
    ]
    bad_priority = [
        c["id"]
        for fw in FRAMEWORKS
        for c in fw["controls"]
        if c.get("priority", "medium") not in PRIORITIES
    ]
    orphan_audits = [a["id"] for a in AUDITS if a["framework_id"] not in fw_ids]
    bad_audit_status = [a["id"] for a in AUDITS if a["status"] not in AUDIT_STATUSES]

    if dupes:
        logger.warning("[config] duplicate control ids: %s", dupes)
    if bad_status:
        logger.warning("[config] controls with unknown status: %s", bad_status)
    if bad_priority:
        logger.warning("[config] controls with unknown priority: %s", bad_priority)
    if orphan_audits:
        logger.warning("[config] audits for unknown frameworks: %s", orphan_audits)
    if bad_audit_status:
        logger.warning("[config] audits with unknown status: %s", bad_audit_status)


_validate_config()


# ----------- Helpers -------------
def _label(status):
    return (status or "").replace("-", " ").title()


def _table(columns, rows, class_name="data-table"):
    """
    Build a plain HTML table.

    :param columns: list of (key, header) pairs
    :param rows: list of dicts
    :return: html.Table
    """
    head = html.Thead(html.Tr([html.Th(h) for _, h in columns]))
    body = html.Tbody(
        [
            html.Tr([html.Td("" if r.get(k) is None else str(r.get(k))) for k, _ in columns])
            for r in rows
        ]
    )
    return html.Table([head, body], className=class_name)


def _kpi(title, value):
    return html.Div(
        [html.Div(title, className="kpi-title"), html.Div(value, className="kpi-value")],
        className="kpi",
    )


def _framework_options():
    return [
        {"label": f"{fw.name} (v{fw.version})", "value": fw.id}
        for fw in BACKEND.fetch_frameworks()
    ]


def _banner(kind, message):
    return {"kind": kind, "message": message}


GRAPH_CONFIG = {"responsive": False, "displaylogo": False, "scrollZoom": False}


# -------------- Layout --------------------
def build_dashboard_tab():
    return dcc.Tab(
        label="Dashboard",
        value="tab-dashboard",
        children=[
            html.Div(id="kpis", className="kpis"),
            html.Div(
                [
                    dcc.Graph(id="framework-bar", config=GRAPH_CONFIG),
                    dcc.Graph(id="status-pie", config=GRAPH_CONFIG),
                ],
                className="charts",
            ),
            html.Div(
                [
                    html.Div(
                        [
                            html.H3("Control Compliance Heatmap"),
                            dcc.Graph(id="heatmap", config=GRAPH_CONFIG),
                        ],
                        className="col heatmap-col",
                    ),
                    html.Div(
                        [
                            html.H3("Compliance by Priority"),
                            dcc.Graph(id="priority-bar", config=GRAPH_CONFIG),
                        ],
                        className="col",
                    ),
                ],
                className="row-heat-actions",
            ),
            html.Div(
                [
                    html.Div(
                        [html.H3("Open Controls"), html.Div(id="open-controls")],
                        className="col",
                    ),
                    html.Div(
                        [html.H3("Alerts"), html.Ul(id="alerts-list", className="actions")],
                        className="col recs-col",
                    ),
                ],
                className="row-heat-actions",
            ),
        ],
    )


def build_controls_tab():
    return dcc.Tab(
        label="Controls",
        value="tab-controls",
        children=[
            html.Div(
                [
                    dcc.Dropdown(id="controls-framework", placeholder="All frameworks"),
                    dcc.Dropdown(
                        id="controls-status",
                        options=[{"label": _label(s), "value": s} for s in CONTROL_STATUSES],
                        placeholder="Any status",
                    ),
                    dcc.Dropdown(
                        id="controls-priority",
                        options=[{"label": p.title(), "value": p} for p in PRIORITIES],
                        placeholder="Any priority",
                    ),
                ],
                className="filters",
            ),
            html.Div(id="controls-table"),
            html.H3("Audits"),
            html.Div(id="audits-table"),
            build_audit_form(),
        ],
    )


def build_audit_form():
    """Schedule a new audit, or pick an existing one to edit or delete."""
    return html.Div(
        [
            html.H3("Schedule / Edit Audit"),
            html.Div(
                [
                    dcc.Dropdown(id="audit-edit", placeholder="New audit"),
                    dcc.Input(id="audit-title", placeholder="Audit title", className="textin"),
                    dcc.Dropdown(id="audit-framework", placeholder="Framework"),
                    dcc.Input(id="audit-auditor", placeholder="Auditor", className="textin"),
                    dcc.Dropdown(
                        id="audit-status",
                        options=[{"label": _label(s), "value": s} for s in AUDIT_STATUSES],
                        value="scheduled",
                        clearable=False,
                    ),
                    dcc.DatePickerSingle(id="audit-start", placeholder="Start date"),
                    dcc.DatePickerSingle(id="audit-end", placeholder="End date"),
                ],
                className="filters",
            ),
            dcc.Textarea(id="audit-notes", placeholder="Notes", className="notes"),
            html.Div(
                [
                    html.Button("Save Audit", id="audit-save", n_clicks=0, className="primary"),
                    html.Button("Delete Audit", id="audit-delete", n_clicks=0, className="secondary"),
                ],
                className="export-row",
            ),
        ],
        className="domain-card",
    )


def build_assessment_tab():
    return dcc.Tab(
        label="Assessment",
        value="tab-assess",
        children=[
            html.Ol(id="wizard-steps", className="stepper"),
            html.Div(
                [
                    html.Label("Compliance Framework"),
                    dcc.Dropdown(id="framework-select", clearable=True),
                ],
                id="framework-select-row",
                className="field",
            ),
            html.Div(id="wizard-body"),
            html.Div(id="wizard-error", className="inline-error"),
            html.Div(
                [
                    html.Button("Back", id="wizard-back", n_clicks=0, className="secondary"),
                    html.Button("Next", id="wizard-next", n_clicks=0, className="primary"),
                    html.Button(
                        "Submit Assessment", id="wizard-submit", n_clicks=0, className="primary"
                    ),
                    html.Button(
                        "New Assessment", id="wizard-reset", n_clicks=0, className="secondary"
                    ),
                ],
                className="export-row",
            ),
        ],
    )


def build_results_tab():
    return dcc.Tab(
        label="Results & Reports",
        value="tab-results",
        children=[
            html.Div(id="result-kpis", className="kpis"),
            html.Div(id="result-table"),
            html.Div(
                [
                    html.Button("Download CSV", id="dl-csv", n_clicks=0, className="secondary"),
                    dcc.Download(id="dl-csv-out"),
                    html.Button("Download PPTX", id="dl-ppt", n_clicks=0, className="secondary"),
                    dcc.Download(id="dl-ppt-out"),
                    html.Button("Download PDF", id="dl-pdf", n_clicks=0, className="secondary"),
                    dcc.Download(id="dl-pdf-out"),
                    html.Button("Save Report", id="save-report", n_clicks=0, className="primary"),
                ],
                className="export-row",
            ),
            html.Div(
                [
                    dcc.Input(
                        id="share-recipients",
                        placeholder="alice@example.com, bob@example.com",
                        className="textin",
                    ),
                    html.Button("Share Report", id="share-report", n_clicks=0, className="secondary"),
                    html.Div(id="report-url", className="report-url"),
                ],
                className="export-row",
            ),
        ],
    )


app.layout = html.Div(
    id="page-root",
    className="page theme-light",
    children=[
        dcc.Store(id="wizard-store"),
        dcc.Store(id="result-store"),
        dcc.Store(id="report-url-store"),
        dcc.Store(id="banner-store"),
        dcc.Store(id="data-version", data=0),
        dcc.Store(id="theme-store", data="light"),
        # Header
        html.Div(
            [
                html.H1("Compliance Management"),
                html.Div(
                    [
                        html.Div(
                            [
                                html.Label("Organization"),
                                dcc.Input(
                                    id="org-name",
                                    placeholder="e.g., Northwind Health",
                                    className="textin",
                                ),
                            ],
                            className="field",
                        ),
                        html.Div(
                            [
                                html.Label("Assessor"),
                                dcc.Input(
                                    id="assessor",
                                    placeholder="Your name",
                                    className="textin",
                                ),
                            ],
                            className="field",
                        ),
                        html.Div(
                            [
                                html.Label("Dark mode"),
                                daq.BooleanSwitch(
                                    id="theme-switch",
                                    on=False,
                                    color="#4f46e5",
                                    className="theme-switch",
                                ),
                            ],
                            className="field",
                        ),
                    ],
                    className="meta",
                ),
            ],
            className="header",
        ),
        html.Div(
            [
                html.Span(id="banner-text"),
                html.Button("×", id="banner-close", n_clicks=0, className="banner-close"),
            ],
            id="banner",
            className="banner hidden",
        ),
        dcc.Tabs(
            id="tabs",
            value="tab-dashboard",
            children=[
                build_dashboard_tab(),
                build_controls_tab(),
                build_assessment_tab(),
                build_results_tab(),
            ],
        ),
    ],
)


# -------------- Wizard ---------------
def _on_assessment_complete(result):
    BACKEND.submit_assessment(result)


def load_wizard(data):
    return AssessmentWizard.from_dict(
        data, BACKEND.fetch_frameworks(), on_complete=_on_assessment_complete
    )


def record_answers(wiz, answer_ids, answer_values, note_ids=None, note_values=None):
    """
    Copy the values of the rendered question inputs into the wizard.

    Inputs left over from a previous framework are ignored.
    """
    known = {q.id for c in wiz.controls for q in c.questions}
    notes = {
        pid["qid"]: v for pid, v in zip(note_ids or [], note_values or []) if pid["qid"] in known
    }
    for pid, value in zip(answer_ids or [], answer_values or []):
        qid = pid["qid"]
        if qid not in known:
            continue
        wiz.answer(qid, value, notes.get(qid))


def apply_wizard_event(data, trigger, framework_id=None, answer_ids=None, answer_values=None,
                       note_ids=None, note_values=None):
    """
    Rebuild the wizard from its stored state, apply one UI event and return it.

    Args:
        data (dict): wizard state from the "wizard-store"
        trigger (str): id of the component that fired
        framework_id (str): value of the framework dropdown
        answer_ids, answer_values: pattern-matched question inputs
        note_ids, note_values: pattern-matched notes inputs

    Returns:
        AssessmentWizard
    """
    wiz = load_wizard(None if trigger == "wizard-reset" else data)
    record_answers(wiz, answer_ids, answer_values, note_ids, note_values)
    # the dropdown keeps its value across resets; keep the wizard in step with it
    if wiz.step == Step.SELECT_FRAMEWORK and framework_id != wiz.framework_id:
        wiz.select_framework(framework_id)
    if trigger == "wizard-next":
        wiz.next()
    elif trigger == "wizard-back":
        wiz.back()
    elif trigger == "wizard-submit":
        wiz.submit()
    return wiz


@app.callback(
    Output("wizard-store", "data"),
    Output("result-store", "data"),
    Output("data-version", "data"),
    Output("tabs", "value"),
    Output("banner-store", "data"),
    Input("framework-select", "value"),
    Input("wizard-next", "n_clicks"),
    Input("wizard-back", "n_clicks"),
    Input("wizard-submit", "n_clicks"),
    Input("wizard-reset", "n_clicks"),
    State("wizard-store", "data"),
    State("data-version", "data"),
    State({"type": "answer", "qid": ALL}, "id"),
    State({"type": "answer", "qid": ALL}, "value"),
    State({"type": "notes", "qid": ALL}, "id"),
    State({"type": "notes", "qid": ALL}, "value"),
    prevent_initial_call=True,
)
def on_wizard_event(framework_id, _n, _b, _s, _r, data, version, a_ids, a_vals, n_ids, n_vals):
    """
    Drive the assessment wizard from the framework dropdown and the
    Back / Next / Submit / New buttons.

    On a successful submit the result is stored, the dashboard data version
    is bumped, and the app switches to the "Results" tab.
    """
    trigger = ctx.triggered_id
    try:
        wiz = apply_wizard_event(data, trigger, framework_id, a_ids, a_vals, n_ids, n_vals)
    except OperationFailed as exc:
        logger.warning("assessment submit failed: %s", exc)
        return dash.no_update, dash.no_update, dash.no_update, dash.no_update, _banner(
            "error", str(exc)
        )

    if trigger == "wizard-submit" and wiz.submitted:
        result = wiz.result
        return (
            wiz.to_dict(),
            result.to_dict(),
            (version or 0) + 1,
            "tab-results",
            _banner(
                "success",
                f"Assessment for {result.framework_name} completed successfully "
                f"with a score of {result.score_pct:.0f}%",
            ),
        )
    return wiz.to_dict(), dash.no_update, dash.no_update, dash.no_update, dash.no_update


def _question_block(q, answer):
    marker = html.Span("* ", className="required") if q.required else None
    if q.answer_type.value == "text":
        field = dcc.Textarea(
            id={"type": "answer", "qid": q.id},
            value=answer.value or "",
            placeholder="Enter your answer",
            className="textin",
        )
    else:
        field = dcc.RadioItems(
            id={"type": "answer", "qid": q.id},
            options=ANSWER_OPTIONS[q.answer_type.value],
            value=answer.value,
            className="likert",
            inline=True,
        )
    children = [html.Div([marker, q.text], className="qtext")]
    if q.description:
        children.append(html.Div(q.description, className="qdesc"))
    children += [
        field,
        dcc.Textarea(
            id={"type": "notes", "qid": q.id},
            value=answer.notes,
            placeholder="Add any relevant notes or context",
            className="notes",
        ),
    ]
    return html.Div(children, className="qrow")


def render_wizard_body(wiz):
    """Layout for the wizard's current step."""
    if wiz.step == Step.SELECT_FRAMEWORK:
        fw = wiz.framework
        if fw is None:
            return html.P("Select a compliance framework to assess.")
        return html.Div(
            [
                html.H3("Framework Details"),
                html.P(f"This assessment will evaluate your compliance with {fw.name}."),
                html.P(f"Total controls to assess: {len(wiz.controls)}"),
                html.P(f"Estimated time to complete: {wiz.estimated_hours} hours"),
            ],
            className="domain-card",
        )

    if wiz.step == Step.ANSWER_CONTROLS:
        control = wiz.current_control
        by_id = {a.question_id: a for a in wiz.answers}
        return html.Div(
            [
                html.Div(
                    [
                        html.Span(f"Control {wiz.control_index + 1} of {len(wiz.controls)}"),
                        html.Span(f"{wiz.progress}% Complete", className="chip"),
                    ],
                    className="progress-row",
                ),
                html.H3(f"{control.control_id} · {control.title}", className="domain-title"),
                html.Div(f"Category: {control.category}", className="qdesc"),
            ]
            + [_question_block(q, by_id[q.id]) for q in control.questions],
            className="domain-card",
        )

    result = wiz.result
    rows = [
        {"control": c.control_id, "title": c.title, "status": _label(result.control_results.get(c.id))}
        for c in wiz.controls
    ]
    children = [
        html.H3("Assessment Summary"),
        html.Div(
            [
                _kpi(result.framework_name, f"{result.score_pct:.1f}%"),
                _kpi("Status", _label(result.status)),
                _kpi(
                    "Controls compliant",
                    f"{result.completed_controls} / {result.total_controls}",
                ),
            ],
            className="kpis",
        ),
        _table([("control", "Control"), ("title", "Title"), ("status", "Status")], rows),
    ]
    if wiz.submitted:
        children.append(html.P("Submitted.", className="submitted"))
    return html.Div(children)


@app.callback(
    Output("wizard-steps", "children"),
    Output("framework-select", "options"),
    Output("framework-select-row", "style"),
    Output("wizard-body", "children"),
    Output("wizard-error", "children"),
    Output("wizard-back", "disabled"),
    Output("wizard-next", "disabled"),
    Output("wizard-submit", "disabled"),
    Input("wizard-store", "data"),
    Input("data-version", "data"),
)
def update_wizard(data, _version):
    """Render the wizard's stepper, body, inline error and button states."""
    wiz = load_wizard(data)
    steps = [
        html.Li(label, className="active" if i == wiz.step else ("done" if i < wiz.step else ""))
        for i, label in enumerate(STEP_LABELS)
    ]
    on_select = wiz.step == Step.SELECT_FRAMEWORK
    return (
        steps,
        _framework_options(),
        {} if on_select else {"display": "none"},
        render_wizard_body(wiz),
        wiz.error or "",
        on_select or wiz.submitted,
        wiz.step == Step.REVIEW or wiz.submitted,
        wiz.step != Step.REVIEW or wiz.submitted,
    )


# -------------- Dashboard ---------------
@app.callback(
    Output("kpis", "children"),
    Output("framework-bar", "figure"),
    Output("status-pie", "figure"),
    Output("heatmap", "figure"),
    Output("priority-bar", "figure"),
    Output("open-controls", "children"),
    Output("alerts-list", "children"),
    Output("controls-framework", "options"),
    Output("audits-table", "children"),
    Output("audit-edit", "options"),
    Output("audit-framework", "options"),
    Input("data-version", "data"),
    Input("theme-store", "data"),
    State("result-store", "data"),
)
def update_dashboard(_version, theme, result_data):
    """
    Recompute the dashboard from the backend's current frameworks.

    Args:
        _version (int): bumped whenever an assessment is submitted
        theme (str): "light" or "dark"
        result_data (dict): the latest assessment result, if any

    Returns:
        tuple: KPIs, four figures, open controls, alerts, framework filter
            options, the audits table and the audit form options
    """
    frameworks = BACKEND.fetch_frameworks()
    stats = dashboard_statistics(frameworks)
    counts = stats["controls_count"]
    kpi_children = [
        _kpi("Overall Compliance", f"{stats['overall_score']}%"),
        _kpi("Frameworks", str(stats["framework_count"])),
        _kpi("Controls Compliant", f"{counts['compliant']} / {counts['total']}"),
        _kpi("Critical Issues", str(stats["critical_issues"])),
    ]
    for fw in frameworks:
        kpi_children.append(_kpi(fw.name, f"{fw.score:.0f}% · {_label(fw.status)}"))

    result = AssessmentResult.from_dict(result_data) if result_data else None
    alerts = compliance_alerts(frameworks, result)
    open_rows = [
        dict(r, status=_label(r["status"]), priority=r["priority"].title())
        for r in open_controls(frameworks)
    ]
    audits = [a.to_dict() for a in BACKEND.fetch_audits()]
    return (
        kpi_children,
        framework_bar_figure(stats["framework_scores"], theme),
        status_pie_figure(stats["status_distribution"], theme),
        heatmap_figure(coverage_matrix(frameworks), theme),
        priority_figure(priority_compliance(frameworks), theme),
        _table(
            [("framework", "Framework"), ("control_id", "Control"), ("title", "Title"),
             ("priority", "Priority"), ("status", "Status")],
            open_rows,
        ),
        [html.Li(f"[{a.severity.upper()}] {a.title}", title=a.description) for a in alerts],
        [{"label": fw.name, "value": fw.id} for fw in frameworks],
        _table(
            [("title", "Audit"), ("framework_id", "Framework"), ("status", "Status"),
             ("start_date", "Start"), ("end_date", "End"), ("auditor", "Auditor"),
             ("finding_count", "Findings")],
            audits,
        ),
        [{"label": f"{a['title']} ({_label(a['status'])})", "value": a["id"]} for a in audits],
        _framework_options(),
    )


@app.callback(
    Output("controls-table", "children"),
    Input("controls-framework", "value"),
    Input("controls-status", "value"),
    Input("controls-priority", "value"),
    Input("data-version", "data"),
)
def update_controls(framework_id, status, priority, _version):
    """List controls, filtered by framework, status and priority."""
    rows = []
    for fw in BACKEND.fetch_frameworks():
        if framework_id and fw.id != framework_id:
            continue
        for c in filter_controls(fw.controls, status=status, priority=priority):
            rows.append(dict(c.to_dict(), framework=fw.name, status=_label(c.status)))
    return _table(
        [("framework", "Framework"), ("control_id", "Control"), ("title", "Title"),
         ("category", "Category"), ("priority", "Priority"), ("status", "Status"),
         ("owner", "Owner"), ("due_date", "Due")],
        rows,
    )


# -------------- Audits ---------------
def audit_form_values(audit_id):
    """Form values for an existing audit, or a blank form for a new one."""
    audit = BACKEND.fetch_audit(audit_id) if audit_id else None
    if audit is None:
        return "", None, "", "scheduled", None, None, ""
    return (
        audit.title,
        audit.framework_id,
        audit.auditor,
        audit.status,
        audit.start_date.isoformat() if audit.start_date else None,
        audit.end_date.isoformat() if audit.end_date else None,
        audit.notes,
    )


def apply_audit_event(trigger, audit_id, fields):
    """
    Save or delete the audit in the form.

    Args:
        trigger (str): "audit-save" or "audit-delete"
        audit_id (str): audit being edited, None for a new audit
        fields (dict): form values keyed by audit field name

    Returns:
        tuple: (id of the audit to keep selected or None, success message)

    Raises:
        InvalidParam: the form values are incomplete or inconsistent
        OperationFailed: the audit no longer exists
    """
    if trigger == "audit-delete":
        if not audit_id:
            raise InvalidParam("Select an audit to delete")
        BACKEND.delete_audit(audit_id)
        return None, "Audit deleted"
    if audit_id:
        audit = BACKEND.update_audit(audit_id, fields)
        return audit.id, f"Audit '{audit.title}' updated"
    audit = BACKEND.create_audit(fields)
    return audit.id, f"Audit '{audit.title}' scheduled"


@app.callback(
    Output("audit-title", "value"),
    Output("audit-framework", "value"),
    Output("audit-auditor", "value"),
    Output("audit-status", "value"),
    Output("audit-start", "date"),
    Output("audit-end", "date"),
    Output("audit-notes", "value"),
    Input("audit-edit", "value"),
)
def fill_audit_form(audit_id):
    return audit_form_values(audit_id)


@app.callback(
    Output("audit-edit", "value"),
    Output("data-version", "data", allow_duplicate=True),
    Output("banner-store", "data", allow_duplicate=True),
    Input("audit-save", "n_clicks"),
    Input("audit-delete", "n_clicks"),
    State("audit-edit", "value"),
    State("audit-title", "value"),
    State("audit-framework", "value"),
    State("audit-auditor", "value"),
    State("audit-status", "value"),
    State("audit-start", "date"),
    State("audit-end", "date"),
    State("audit-notes", "value"),
    State("data-version", "data"),
    prevent_initial_call=True,
)
def on_audit_event(_save, _delete, audit_id, title, framework_id, auditor, status, start, end,
                   notes, version):
    """Create, update or delete an audit and refresh the audit tables."""
    fields = {
        "title": title,
        "framework_id": framework_id,
        "auditor": auditor,
        "status": status,
        "start_date": start,
        "end_date": end,
        "notes": notes,
    }
    try:
        selected, message = apply_audit_event(ctx.triggered_id, audit_id, fields)
    except (InvalidParam, OperationFailed) as exc:
        logger.warning("audit change rejected: %s", exc)
        return dash.no_update, dash.no_update, _banner("error", str(exc))
    return selected, (version or 0) + 1, _banner("success", message)


# -------------- Results & reports ---------------
def _report_from_store(data, org, assessor):
    result = AssessmentResult.from_dict(data)
    framework = BACKEND.fetch_framework(result.framework_id)
    if framework is None:
        raise OperationFailed(f"Framework with ID {result.framework_id} not found")
    return build_report(result, framework, org, assessor)


@app.callback(
    Output("result-kpis", "children"),
    Output("result-table", "children"),
    Input("result-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
)
def update_results(data, org, assessor):
    """Show the latest submitted assessment on the results tab."""
    if not data:
        return [html.P("Submit an assessment to see results here.")], None
    report = _report_from_store(data, org, assessor)
    kpi_children = [
        _kpi(report["framework"], f"{report['score']:.1f}%"),
        _kpi("Status", _label(report["status"])),
        _kpi("Controls compliant", f"{report['completed_controls']} / {report['total_controls']}"),
    ]
    return kpi_children, _table(
        [("control_id", "Control"), ("title", "Title"), ("status", "Status"),
         ("implementation", "Implemented"), ("documentation", "Documented"),
         ("evidence", "Evidence"), ("notes", "Notes")],
        report["rows"],
    )


# Exports
@app.callback(
    Output("dl-csv-out", "data"),
    Input("dl-csv", "n_clicks"),
    State("result-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    prevent_initial_call=True,
)
def download_csv(_, data, org, assessor):
    """
    Download the per-control results as a CSV file.

    Returns:
        dict: dcc.send_string payload
    """
    if not data:
        raise dash.exceptions.PreventUpdate
    report = _report_from_store(data, org, assessor)
    return dcc.send_string(write_csv(report), f"{report['framework_id']}_assessment.csv")


@app.callback(
    Output("dl-ppt-out", "data"),
    Input("dl-ppt", "n_clicks"),
    State("result-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    prevent_initial_call=True,
)
def download_ppt(_, data, org, assessor):
    """Download the assessment as a PPTX deck."""
    if not data:
        raise dash.exceptions.PreventUpdate
    report = _report_from_store(data, org, assessor)
    return dcc.send_bytes(write_pptx(report), f"{report['framework_id']}_assessment.pptx")


@app.callback(
    Output("dl-pdf-out", "data"),
    Input("dl-pdf", "n_clicks"),
    State("result-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    State("theme-store", "data"),
    prevent_initial_call=True,
)
def download_pdf(_, data, org, assessor, theme):
    """
    Download the assessment as a PDF file.

    Args:
        _ (int): Click count of the "Download PDF" button.
        data (dict): The latest result, as stored in the "result-store".
        theme (str, optional): light or dark, for the embedded chart.

    Returns:
        dict: dcc.send_bytes payload
    """
    if not data:
        raise dash.exceptions.PreventUpdate
    report = _report_from_store(data, org, assessor)
    return dcc.send_bytes(
        write_pdf(report, theme or "light"), f"{report['framework_id']}_assessment.pdf"
    )


@app.callback(
    Output("report-url-store", "data"),
    Output("banner-store", "data", allow_duplicate=True),
    Input("save-report", "n_clicks"),
    State("result-store", "data"),
    State("org-name", "value"),
    State("assessor", "value"),
    prevent_initial_call=True,
)
def save_report(_, data, org, assessor):
    """Save the report through the reporting service and keep its URL."""
    if not data:
        raise dash.exceptions.PreventUpdate
    try:
        url = REPORTS.save(_report_from_store(data, org, assessor))
    except OperationFailed as exc:
        logger.warning("report save failed: %s", exc)
        return dash.no_update, _banner("error", str(exc))
    return url, _banner("success", f"Report saved to {url}")


@app.callback(
    Output("banner-store", "data", allow_duplicate=True),
    Input("share-report", "n_clicks"),
    State("report-url-store", "data"),
    State("share-recipients", "value"),
    prevent_initial_call=True,
)
def share_report(_, url, recipients):
    """Share the saved report with a comma-separated list of addresses."""
    try:
        shared = REPORTS.share(url, (recipients or "").split(","))
    except OperationFailed as exc:
        logger.warning("report share failed: %s", exc)
        return _banner("error", str(exc))
    return _banner("success", f"Report shared with {len(shared)} recipient(s)")


@app.callback(
    Output("report-url", "children"),
    Input("report-url-store", "data"),
)
def show_report_url(url):
    if not url:
        return ""
    return html.A(url, href=url, target="_blank")


# Banner: dismissible operation messages
@app.callback(
    Output("banner-store", "data", allow_duplicate=True),
    Input("banner-close", "n_clicks"),
    prevent_initial_call=True,
)
def dismiss_banner(_):
    return None


@app.callback(
    Output("banner", "className"),
    Output("banner-text", "children"),
    Input("banner-store", "data"),
)
def show_banner(data):
    if not data:
        return "banner hidden", ""
    return f"banner banner-{data['kind']}", data["message"]


# Theme toggle -> update page class and store
@app.callback(
    Output("page-root", "className"),
    Output("theme-store", "data"),
    Input("theme-switch", "on"),
)
def apply_theme(is_on):
    """
    Toggle the page theme class and store the current theme value.

    Args:
        is_on (bool): The on/off state of the theme switch.

    Returns:
        tuple: A pair of (page class name, theme name).
    """
    theme = "dark" if is_on else "light"
    return f"page theme-{theme}", theme


# ---------- Main -------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(debug=False)
