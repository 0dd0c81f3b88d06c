"""
Database models module.
All SQLAlchemy models are exported from here for easy imports.
"""

from quotebuilder.models.role import Role, RolePermission, PermissionResource, PermissionAction
from quotebuilder.models.user import User
from quotebuilder.models.client import Client
from quotebuilder.models.product import Category, Product
from quotebuilder.models.template import PdfTemplate
from quotebuilder.models.quote import Quote, QuoteItem, PolicyClause, PolicyType
from quotebuilder.models.revision import QuoteRevision


__all__ = [
    "Role",
    "RolePermission",
    "PermissionResource",
    "PermissionAction",
    "User",
    "Client",
    "Category",
    "Product",
    "PdfTemplate",
    "Quote",
    "QuoteItem",
    "PolicyClause",
    "PolicyType",
    "QuoteRevision",
]
