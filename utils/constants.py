"""
utils/constants.py

Purpose: Centralized static content

- Canonical region list and enum values
- Display labels for provider fields
- User-facing messages and email templates

(Prevents hardcoding across the codebase)
"""

# ============================================================
# GEOGRAPHY
# ============================================================

# All 16 Ghana regions, alphabetical (display order for region dashboards)
GHANA_REGIONS = [
    "Ahafo", "Ashanti", "Bono", "Bono East",
    "Central", "Eastern", "Greater Accra", "North East", "Northern", "Oti",
    "Savannah", "Upper East", "Upper West", "Volta", "Western",
    "Western North",
]

UNSPECIFIED_REGION = "Unspecified Region"

# Pseudo main categories used by the frontend for homepage sections
EXCLUDED_MAIN_CATEGORIES = {"Popular Jobs", "Popular Workers"}


# ============================================================
# ENUMS
# ============================================================

TASK_STATUSES = ("open", "completed")

MAX_TASK_CATEGORIES = 5
MAX_TASK_IMAGES = 5
MAX_PROVIDER_SKILLS = 15
MAX_SAMPLE_WORK = 10
MAX_HOME_SECTION_ITEMS = 32
FEATURED_PROVIDERS_ON_HOME = 8
HOME_SECTION_PAGE = 8
FEATURED_DAYS = 30
URGENT_WORK_DAYS = 7
HOME_SEARCH_LIMIT = 20


# ============================================================
# DISPLAY LABELS
# ============================================================

EXPERIENCE_LABELS = {
    "": "Not specified",
    "less-1": "Less than 1 year",
    "1-3": "1-3 years",
    "3-5": "3-5 years",
    "5-10": "5-10 years",
    "10+": "10+ years",
}

AVAILABILITY_LABELS = {
    "flexible": "Flexible",
    "weekdays": "Weekdays only",
    "weekends": "Weekends only",
    "evenings": "Evenings only",
}

# Years-of-experience order, for sorting
EXPERIENCE_RANKS = {"": 0, "less-1": 1, "1-3": 2, "3-5": 3, "5-10": 4, "10+": 5}

NEGOTIABLE_RATE_LABEL = "Negotiable"
CURRENCY_SYMBOL = "₵"


# ============================================================
# MEDIA
# ============================================================

IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
DOCUMENT_EXTENSIONS = {".pdf", ".doc", ".docx", ".txt"}


# ============================================================
# MESSAGES
# ============================================================

TASK_CREATED_MESSAGE = "Task created successfully"
TASK_UPDATED_MESSAGE = "Task updated successfully"
TASK_DELETED_MESSAGE = "Task deleted successfully"
TASK_STATUS_UPDATED_MESSAGE = "Task status updated successfully"

PROVIDER_REGISTERED_MESSAGE = "Provider registration submitted successfully!"
PROVIDER_ALREADY_REGISTERED_MESSAGE = "You have already registered as a provider."
PROVIDER_UPDATED_MESSAGE = "Provider updated successfully!"
SAMPLE_REMOVED_MESSAGE = "Sample image removed successfully"
REVIEW_ADDED_MESSAGE = "Review added"
ALREADY_REVIEWED_MESSAGE = "You already reviewed this provider"

UPDATE_REQUEST_SUBMITTED_MESSAGE = (
    "Update request submitted for admin approval. "
    "You will be notified when it's reviewed."
)
NO_CHANGES_MESSAGE = "No changes detected to submit"
UPDATE_REQUEST_APPROVED_MESSAGE = "Provider update approved successfully"
UPDATE_REQUEST_REJECTED_MESSAGE = "Update request rejected"
DEFAULT_REJECTION_REASON = "No reason provided"

REGISTRATION_MESSAGE = "Registration successful! Please check your email to verify your account."
LOGIN_MESSAGE = "Login successful"
EMAIL_VERIFIED_MESSAGE = "Email verified successfully. You can now log in."
PROFILE_UPDATED_MESSAGE = "Profile updated successfully"
VERIFICATION_RESENT_MESSAGE = "Verification email sent. Please check your inbox."
PASSWORD_RESET_SENT_MESSAGE = "Password reset email sent!"
PASSWORD_RESET_MESSAGE = "Password has been reset successfully!"


# ============================================================
# EMAIL TEMPLATES
# ============================================================

VERIFICATION_EMAIL_SUBJECT = "Verify Your WorkisReady Account"

VERIFICATION_EMAIL_HTML = """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="text-align: center; background-color: #0099CC; color: white; padding: 20px; border-radius: 10px 10px 0 0;">
    <h1>WorkIsReady</h1>
  </div>
  <div style="padding: 30px; background-color: #f9f9f9; border-radius: 0 0 10px 10px;">
    <h2 style="color: #0099CC;">Welcome to WorkisReady!</h2>
    <p>Hello <strong>{name}</strong>,</p>
    <p>Thank you for registering. Please verify your email address by clicking the link below:</p>
    <p style="text-align: center; margin: 30px 0;">
      <a href="{verification_url}" style="background-color: #0099CC; color: white; padding: 12px 30px; text-decoration: none; border-radius: 5px; font-weight: bold;">Verify Email Address</a>
    </p>
    <p>Or copy and paste this link in your browser:</p>
    <p style="word-break: break-all; color: #666;">{verification_url}</p>
    <p>This verification link will expire in {expiry_hours} hours.</p>
    <p>If you didn't create an account with WorkisReady, please ignore this email.</p>
    <p>Best regards,<br>The WorkisReady Team</p>
  </div>
</div>"""

VERIFICATION_EMAIL_TEXT = """Hello {name},

Thank you for registering with WorkisReady. Verify your email address here:
{verification_url}

This link expires in {expiry_hours} hours."""

PASSWORD_RESET_EMAIL_SUBJECT = "Reset Your WorkisReady Password"

PASSWORD_RESET_EMAIL_HTML = """<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #0099CC;">Password Reset Request</h2>
  <p>Hello <strong>{name}</strong>,</p>
  <p>Click the link below to reset your password:</p>
  <p><a href="{reset_url}" target="_blank">{reset_url}</a></p>
  <p>This link expires in {expiry_minutes} minutes.</p>
  <p>If you didn't request a password reset, you can ignore this email.</p>
</div>"""

PASSWORD_RESET_EMAIL_TEXT = """Hello {name},

Reset your WorkisReady password here:
{reset_url}

This link expires in {expiry_minutes} minutes."""
