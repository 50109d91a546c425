"""Database models — re-exports all models.

Import from here:  from app.models import User, Job, ...
Or from submodules: from app.models.jobs import Job
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import User  # noqa: F401

# Departments
from .department import Department  # noqa: F401

# Jobs, history, contacts, messages
from .jobs import Job, JobExtraContact, JobStatusHistory, Message  # noqa: F401

# Files
from .files import FileUpload  # noqa: F401

# Email
from .email import EmailLog, EmailMedia, EmailTemplate, EmailTemplateImage  # noqa: F401

# Vouchers
from .vouchers import VoucherCode, VoucherUsage  # noqa: F401

# Pricing
from .pricing import PricingTier, ProductPricing  # noqa: F401

# Payments
from .payments import Payment, PaymentLineItem  # noqa: F401

# Design Packages
from .design_packages import DesignPackageOrder  # noqa: F401

# Designer Assignments
from .assignments import DesignerAssignment  # noqa: F401

# Surveys
from .surveys import Survey  # noqa: F401

# Error Reports
from .error_report import ErrorReport  # noqa: F401
