# --- Configuration --------------------------------------------------------------------------------

# Radio options per answer type. "text" answers are free-form.
ANSWER_OPTIONS = {
    "yes-no": [
        {"label": "Yes", "value": "yes"},
        {"label": "No", "value": "no"},
    ],
    "yes-no-partial": [
        {"label": "Yes", "value": "yes"},
        {"label": "Partially", "value": "partial"},
        {"label": "No", "value": "no"},
    ],
    "yes-no-na": [
        {"label": "Yes", "value": "yes"},
        {"label": "No", "value": "no"},
        {"label": "Not Applicable", "value": "na"},
    ],
}

CONTROL_STATUSES = ["compliant", "partially-compliant", "non-compliant", "pending"]
PRIORITIES = ["critical", "high", "medium", "low"]
AUDIT_STATUSES = ["scheduled", "in-progress", "completed", "archived"]

# Partial credit counts half; thresholds apply to a 0-1 score.
PARTIAL_CREDIT = 0.5
COMPLIANT_THRESHOLD = 0.8
PARTIAL_THRESHOLD = 0.5

# Minutes a reviewer needs per control, used for the wizard's time estimate.
MINUTES_PER_CONTROL = 3

# Alerts
LOW_SCORE_ALERT = 70
CRITICAL_SCORE_ALERT = 50
DUE_SOON_DAYS = 7

# Mock API
API_VERSION = "1.0"
API_PREFIX = "/api/v1/compliance"
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MAX_REQUESTS = 100
MIN_TOKEN_LENGTH = 20
DEFAULT_PAGE_SIZE = 20
DEFAULT_CONTROLS_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

REPORT_BASE_URL = "/reports"

# Sample frameworks. Controls carry the status last recorded on the dashboard;
# assessments overwrite the framework score and status, not the control rows.
FRAMEWORKS = [
    {
        "id": "gdpr",
        "name": "GDPR",
        "version": "2016/679",
        "description": "EU General Data Protection Regulation.",
        "last_updated": "2026-09-12",
        "controls": [
            {
                "id": "gdpr-1",
                "control_id": "Art. 5",
                "title": "Principles of processing",
                "category": "Lawfulness",
                "description": "Personal data is processed lawfully, fairly and transparently.",
                "priority": "high",
                "status": "compliant",
                "owner": "DPO",
            },
            {
                "id": "gdpr-2",
                "control_id": "Art. 6",
                "title": "Lawful basis register",
                "category": "Lawfulness",
                "description": "Every processing activity has a documented lawful basis.",
                "priority": "critical",
                "status": "partially-compliant",
                "owner": "DPO",
                "due_date": "2026-10-24",
            },
            {
                "id": "gdpr-3",
                "control_id": "Art. 15-22",
                "title": "Data subject request handling",
                "category": "Data Subject Rights",
                "description": "DSARs are logged, verified and answered within one month.",
                "priority": "critical",
                "status": "compliant",
                "owner": "Privacy Ops",
            },
            {
                "id": "gdpr-4",
                "control_id": "Art. 30",
                "title": "Record of processing activities",
                "category": "Accountability",
                "description": "The ROPA is complete and reviewed at least yearly.",
                "priority": "high",
                "status": "partially-compliant",
                "owner": "DPO",
                "due_date": "2026-12-01",
            },
            {
                "id": "gdpr-5",
                "control_id": "Art. 32",
                "title": "Security of processing",
                "category": "Security",
                "description": "Encryption, access control and resilience appropriate to the risk.",
                "priority": "critical",
                "status": "compliant",
                "owner": "CISO",
            },
            {
                "id": "gdpr-6",
                "control_id": "Art. 33-34",
                "title": "Breach notification",
                "category": "Security",
                "description": "Breaches are reported to the authority within 72 hours.",
                "priority": "critical",
                "status": "non-compliant",
                "owner": "CISO",
                "due_date": "2026-10-22",
            },
            {
                "id": "gdpr-7",
                "control_id": "Art. 35",
                "title": "Data protection impact assessments",
                "category": "Accountability",
                "description": "DPIAs are run for high-risk processing before go-live.",
                "priority": "medium",
                "status": "pending",
                "owner": "DPO",
            },
        ],
    },
    {
        "id": "hipaa",
        "name": "HIPAA",
        "version": "45 CFR 164",
        "description": "US Health Insurance Portability and Accountability Act Security Rule.",
        "last_updated": "2026-08-30",
        "controls": [
            {
                "id": "hipaa-1",
                "control_id": "164.308(a)(1)",
                "title": "Security management process",
                "category": "Administrative Safeguards",
                "description": "Risk analysis and risk management for ePHI.",
                "priority": "critical",
                "status": "compliant",
                "owner": "Security Officer",
            },
            {
                "id": "hipaa-2",
                "control_id": "164.308(a)(5)",
                "title": "Security awareness training",
                "category": "Administrative Safeguards",
                "description": "Workforce is trained on ePHI handling.",
                "priority": "medium",
                "status": "compliant",
                "owner": "HR",
            },
            {
                "id": "hipaa-3",
                "control_id": "164.310(a)(1)",
                "title": "Facility access controls",
                "category": "Physical Safeguards",
                "description": "Physical access to systems holding ePHI is limited.",
                "priority": "high",
                "status": "partially-compliant",
                "owner": "Facilities",
            },
            {
                "id": "hipaa-4",
                "control_id": "164.312(a)(1)",
                "title": "Access control",
                "category": "Technical Safeguards",
                "description": "Unique user IDs, emergency access and automatic logoff.",
                "priority": "critical",
                "status": "compliant",
                "owner": "IT",
            },
            {
                "id": "hipaa-5",
                "control_id": "164.312(b)",
                "title": "Audit controls",
                "category": "Technical Safeguards",
                "description": "Activity in systems containing ePHI is recorded and examined.",
                "priority": "high",
                "status": "non-compliant",
                "owner": "IT",
                "due_date": "2026-11-15",
            },
            {
                "id": "hipaa-6",
                "control_id": "164.312(e)(1)",
                "title": "Transmission security",
                "category": "Technical Safeguards",
                "description": "ePHI is encrypted in transit.",
                "priority": "critical",
                "status": "compliant",
                "owner": "IT",
            },
        ],
    },
    {
        "id": "iso27001",
        "name": "ISO 27001",
        "version": "2022",
        "description": "Information Security Management System requirements.",
        "last_updated": "2026-07-18",
        "controls": [
            {
                "id": "iso-1",
                "control_id": "5.1",
                "title": "Information security policies",
                "category": "Organizational",
                "description": "ISMS policy is approved, published and reviewed.",
                "priority": "high",
                "status": "compliant",
                "owner": "CISO",
            },
            {
                "id": "iso-2",
                "control_id": "5.15",
                "title": "Access control policy",
                "category": "Organizational",
                "description": "Rules for physical and logical access are defined.",
                "priority": "critical",
                "status": "compliant",
                "owner": "IAM",
            },
            {
                "id": "iso-3",
                "control_id": "6.3",
                "title": "Security awareness and training",
                "category": "People",
                "description": "Personnel receive role-appropriate security training.",
                "priority": "medium",
                "status": "partially-compliant",
                "owner": "HR",
            },
            {
                "id": "iso-4",
                "control_id": "7.4",
                "title": "Physical security monitoring",
                "category": "Physical",
                "description": "Premises are continuously monitored for unauthorised access.",
                "priority": "low",
                "status": "compliant",
                "owner": "Facilities",
            },
            {
                "id": "iso-5",
                "control_id": "8.8",
                "title": "Management of technical vulnerabilities",
                "category": "Technological",
                "description": "Vulnerabilities are identified, rated and remediated on time.",
                "priority": "critical",
                "status": "partially-compliant",
                "owner": "SecOps",
                "due_date": "2026-11-02",
            },
            {
                "id": "iso-6",
                "control_id": "8.15",
                "title": "Logging",
                "category": "Technological",
                "description": "Logs of activities, exceptions and faults are produced and protected.",
                "priority": "high",
                "status": "compliant",
                "owner": "SecOps",
            },
            {
                "id": "iso-7",
                "control_id": "8.24",
                "title": "Use of cryptography",
                "category": "Technological",
                "description": "Cryptographic key management rules are defined and applied.",
                "priority": "high",
                "status": "compliant",
                "owner": "SecOps",
            },
            {
                "id": "iso-8",
                "control_id": "5.24",
                "title": "Incident management planning",
                "category": "Organizational",
                "description": "Roles and procedures for security incidents are established.",
                "priority": "high",
                "status": "pending",
                "owner": "CISO",
            },
        ],
    },
]

AUDITS = [
    {
        "id": "audit-1",
        "framework_id": "gdpr",
        "title": "GDPR annual internal audit",
        "status": "completed",
        "start_date": "2026-03-02",
        "end_date": "2026-03-20",
        "auditor": "Internal Audit",
        "findings": ["ROPA missing two processors", "Breach runbook out of date"],
        "score": 71,
    },
    {
        "id": "audit-2",
        "framework_id": "hipaa",
        "title": "HIPAA security rule review",
        "status": "in-progress",
        "start_date": "2026-10-01",
        "end_date": "2026-10-31",
        "auditor": "Clearwater Advisory",
        "findings": [],
        "score": 0,
    },
    {
        "id": "audit-3",
        "framework_id": "iso27001",
        "title": "ISO 27001 surveillance audit",
        "status": "scheduled",
        "start_date": "2026-12-07",
        "end_date": "2026-12-11",
        "auditor": "BSI",
        "findings": [],
        "score": 0,
    },
    {
        "id": "audit-4",
        "framework_id": "iso27001",
        "title": "ISO 27001 certification audit",
        "status": "archived",
        "start_date": "2025-11-10",
        "end_date": "2025-11-21",
        "auditor": "BSI",
        "findings": ["Vulnerability SLAs not met for medium findings"],
        "score": 84,
    },
]
