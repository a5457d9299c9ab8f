"""
Enumerations shared by the record schemas.

Values are the exact strings the dashboard stores and exchanges, so they are
used directly on the wire and in storage.
"""
from enum import Enum


class Grade(str, Enum):
    """Final assessment grade. PASS is the billing trigger."""
    PASS = "Pass"
    FAIL = "Fail"
    PENDING = "Pending"


class Currency(str, Enum):
    HBAR = "HBAR"
    USDC = "USDC"
    USD = "USD"
    EUR = "EUR"


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    PAID = "Paid"
    OVERDUE = "Overdue"
    VOID = "Void"


class PaymentModel(str, Enum):
    PER_CERTIFICATION = "Per_Certification"
    FIXED_RECURRING = "Fixed_Recurring"


class BillingCycle(str, Enum):
    MONTHLY = "Monthly"
    BIMONTHLY = "Bimonthly"
    QUARTERLY = "Quarterly"


class PaymentMethod(str, Enum):
    CRYPTO_WALLET = "Crypto_Wallet"
    BANK_TRANSFER = "Bank_Transfer"


class PaymentTerms(str, Enum):
    DUE_ON_RECEIPT = "Due on Receipt"
    NET_15 = "Net 15"
    NET_30 = "Net 30"

    @property
    def days(self) -> int:
        return {"Due on Receipt": 0, "Net 15": 15, "Net 30": 30}[self.value]


class EventFormat(str, Enum):
    ONLINE = "Online"
    IN_PERSON = "In-Person"


class CampaignStatus(str, Enum):
    DRAFT = "Draft"
    SENDING = "Sending"
    COMPLETED = "Completed"


class AdminRole(str, Enum):
    SUPER_ADMIN = "Super Admin (HQ)"
    REGIONAL_ADMIN = "Regional Admin (Cluster)"
    COMMUNITY_ADMIN = "Community Admin (Local)"


class AdminStatus(str, Enum):
    ACTIVE = "Active"
    INVITED = "Invited"
    DISABLED = "Disabled"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    UPLOAD = "UPLOAD"
    EMAIL_SENT = "EMAIL_SENT"
    INVOICE_CREATED = "INVOICE_CREATED"
    LOGIN = "LOGIN"


class EntityType(str, Enum):
    DEVELOPER = "developer"
    INVOICE = "invoice"
    EVENT = "event"
    AGREEMENT = "agreement"
    CAMPAIGN = "campaign"
    ADMIN = "admin"
    REGISTRY = "registry"
