from models.application import ApplicationMessage, Document, LeasingApplication, LeasingOffer
from models.car import Car
from models.cms import AuditLog, Form, FormSubmission, Page, Parser, SystemSetting
from models.company import LeasingCompany
from models.notification import Notification
from models.user import User

__all__ = [
    "ApplicationMessage",
    "AuditLog",
    "Car",
    "Document",
    "Form",
    "FormSubmission",
    "LeasingApplication",
    "LeasingCompany",
    "LeasingOffer",
    "Notification",
    "Page",
    "Parser",
    "SystemSetting",
    "User",
]
