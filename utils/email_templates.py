"""
utils/email_templates.py

Purpose: Transactional email bodies

- One HTML template per lifecycle event and audience
- Rendered with str.format; values are HTML-escaped before substitution
"""

import html
from typing import Dict, Any


EMAIL_VERIFICATION = """
<h1>Email Verification</h1>
<p>Hi {userName},</p>
<p>Please verify your email by clicking the link below:</p>
<p><a href="{verificationUrl}" clicktracking="off">{verificationUrl}</a></p>
<p>Or enter this code: <b>{code}</b></p>
<p>This code will expire in {expiresMinutes} minutes.</p>
"""

QUOTATION_REQUESTED_TO_ADMIN = """
<h2>New Quotation Request</h2>
<p><b>{userName}</b> ({userEmail}) requested a quotation on {date}.</p>
<p><b>Project:</b> {projectName}</p>
<p><b>Description:</b> {description}</p>
"""

QUOTATION_REQUESTED_TO_USER = """
<h2>We received your quotation request</h2>
<p>Hi {userName},</p>
<p>Your request for <b>{projectName}</b> is with our team. We will send you a quote shortly.</p>
<p>Questions? Write to {supportEmail}.</p>
"""

QUOTE_RAISED_TO_USER = """
<h2>Your quote is ready</h2>
<p>Hi {userName},</p>
<p>Project <b>{projectName}</b> requires <b>{requiredHour}</b> hours.</p>
<p><a href="{projectLink}">Review and approve the quote</a></p>
"""

QUOTE_HOUR_UPDATED = """
<h2>Your quote was updated</h2>
<p>Hi {userName},</p>
<p>Project <b>{projectName}</b> now requires <b>{requiredHour}</b> hours.</p>
<p><a href="{projectLink}">Review the updated quote</a></p>
"""

QUOTE_APPROVED_TO_USER = """
<h2>Quotation approved</h2>
<p>Hi {userName},</p>
<p>You approved <b>{projectName}</b>. {requiredHour} hours were reserved for this project.</p>
<p>Questions? Write to {supportEmail}.</p>
"""

QUOTE_APPROVED_TO_ADMIN = """
<h2>Quotation approved</h2>
<p><b>{userName}</b> ({userEmail}) approved <b>{projectName}</b> ({requiredHour} hours) on {date}.</p>
"""

QUOTE_REJECTED_TO_USER = """
<h2>Quotation rejected</h2>
<p>Hi {userName},</p>
<p>You rejected the quote for <b>{projectName}</b>. No hours were deducted.</p>
<p>Questions? Write to {supportEmail}.</p>
"""

QUOTE_REJECTED_TO_ADMIN = """
<h2>Quotation rejected</h2>
<p><b>{userName}</b> ({userEmail}) rejected <b>{projectName}</b> on {date}.</p>
"""

WORK_STARTED_TO_USER = """
<h2>Work started</h2>
<p>Hi {userName},</p>
<p>Our team started working on <b>{projectName}</b>. We will deliver within the agreed timeframe.</p>
<p>Questions? Write to {supportEmail}.</p>
"""

PROJECT_COMPLETED_TO_USER = """
<h2>Project completed</h2>
<p>Hi {userName},</p>
<p><b>{projectName}</b> is complete.</p>
<p><a href="{downloadLink}">Download your files</a></p>
<p>Questions? Write to {supportEmail}.</p>
"""


def render(template: str, context: Dict[str, Any]) -> str:
    """
    Fills a template with HTML-escaped values.
    """
    safe = {key: html.escape("" if value is None else str(value)) for key, value in context.items()}
    return template.format(**safe)
